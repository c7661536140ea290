from dbdesk.cli.common.output import console, out
from dbdesk.core.commit import ChangeOutcome, CommitResult, OutcomeStatus
from dbdesk.core.ledger import ChangeType, PendingChange


def test_pending_changes_table_renders_markup_like_values_literally():
    change = PendingChange(
        type=ChangeType.UPDATE,
        table_name="notes[x]",
        primary_key={"id": "[bold]1"},
        new_data={"body": "[/]", "tag": None},
    )

    with console.capture() as captured:
        out.pending_changes_table([change])

    text = captured.get()
    assert "[/]" in text
    assert "[bold]1" in text
    assert "NULL" in text


def test_commit_results_table_renders_error_text_literally():
    change = PendingChange(type=ChangeType.DELETE, table_name="t", primary_key={"id": 1})
    result = CommitResult(
        failed=1,
        outcomes=(
            ChangeOutcome(
                key=change.key,
                change=change,
                status=OutcomeStatus.ERROR,
                error="unexpected token [/red]",
            ),
        ),
    )

    with console.capture() as captured:
        out.commit_results_table(result)

    assert "[/red]" in captured.get()


def test_messages_keep_square_brackets():
    with console.capture() as captured:
        out.warn("Column [/] is odd")

    assert "Column [/] is odd" in captured.get()
