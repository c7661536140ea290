"""Questionary / prompt_toolkit theme for dbdesk prompts.

Questionary renders through prompt_toolkit, so one style object per
prompt family keeps the edit session and confirmations consistent.
"""

from __future__ import annotations

from prompt_toolkit.styles import Style

QUESTIONARY_STYLE_SELECT = Style.from_dict(
    {
        "qmark": "bold ansicyan",
        "question": "bold ansibrightcyan",
        "answer": "bold ansibrightgreen",
        "pointer": "bold ansibrightgreen",
        "highlighted": "bold ansibrightgreen",
        "selected": "ansigreen",
        "separator": "ansibrightblack",
        "instruction": "ansibrightblack",
        "text": "",
        "disabled": "ansibrightblack italic",
    }
)

QUESTIONARY_STYLE_CONFIRM = Style.from_dict(
    {
        "qmark": "bold ansiyellow",
        "question": "bold ansibrightyellow",
        "answer": "bold ansibrightyellow",
        "instruction": "ansibrightblack",
    }
)
