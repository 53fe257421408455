"""Tests for the per-document diagnostics sink."""

from pathlib import Path

from craft_export.diagnostics import Diagnostic, Diagnostics


def test_record_keeps_order_per_document():
    diagnostics = Diagnostics()
    diagnostics.record("Inbox/b.md", "first")
    diagnostics.record(Path("Inbox/a.md"), "other")
    diagnostics.record(Path("Inbox/b.md"), "second")

    assert [d.message for d in diagnostics.for_document("Inbox/b.md")] == ["first", "second"]
    assert [path for path, _ in diagnostics.items()] == [Path("Inbox/b.md"), Path("Inbox/a.md")]
    assert len(diagnostics) == 3


def test_empty():
    diagnostics = Diagnostics()
    assert not diagnostics
    assert diagnostics.for_document("x.md") == []
    assert diagnostics.to_markdown() == ""


def test_to_markdown():
    diagnostics = Diagnostics()
    diagnostics.record("Notes/Plan.md", "skipping table")
    diagnostics.record("Notes/Plan.md", "skipping overlapping styles", "abc\n^^ [bold] 0..1")

    assert diagnostics.to_markdown() == (
        "## [[Plan.md]]\n\n"
        "- [ ] skipping table\n"
        "- [ ] skipping overlapping styles\n"
        "\n```\nabc\n^^ [bold] 0..1\n```\n\n"
        "\n"
    )


def test_console_markup_is_escaped():
    assert Diagnostic("see [link]").to_console() == "[red]see \\[link][/red]"
