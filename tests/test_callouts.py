"""Tests for callout block scanning and replacement."""

from typing import List

import markdown
from bs4 import BeautifulSoup

from callouts import (
    CalloutBlock,
    CalloutExtension,
    CalloutPreprocessor,
    PlainText,
    Variant,
    all_callout_ids,
    render_container,
    scan,
    split_lines,
    warn_duplicate_ids,
)


def render(text: str) -> str:
    return markdown.markdown(text)


def identity(text: str) -> str:
    return text


def test_note_block_becomes_hidden_container() -> None:
    """A note block is replaced by a hidden, identified, classed div."""

    out = CalloutPreprocessor(render).process("[!note:alpha]\nHello *world*\n[/!note]\n")
    div = BeautifulSoup(out, "html.parser").find(id="alpha")

    assert div.name == "div"
    assert "callout-note" in div["class"]
    assert div.has_attr("hidden")
    assert div.decode_contents() == "<p>Hello <em>world</em></p>"


def test_trigger_block_uses_trigger_class() -> None:
    """Trigger blocks differ from notes only by their class."""

    out = CalloutPreprocessor(render).process("[!trigger:beta]\nSome *text*\n[/!trigger]\n")
    div = BeautifulSoup(out, "html.parser").find(id="beta")

    assert div["class"] == ["callout", "callout-trigger"]
    assert div["data-callout"] == "trigger"
    assert div.has_attr("hidden")


def test_text_outside_blocks_is_untouched() -> None:
    """Only the callout span is replaced."""

    doc = "before\n\n[!note:a]\nx\n[/!note]\nafter\n"
    out, blocks = CalloutPreprocessor(render).extract(doc)

    container = render_container(blocks[0])
    assert out == "before\n\n" + "\n" + container + "\n" + "\n" + "after\n"


def test_unterminated_block_passes_through() -> None:
    """An opening marker without a closing marker is left as is."""

    doc = "intro\n[!note:x]\nstill open\n  \r\nend"
    out, blocks = CalloutPreprocessor(render).extract(doc)

    assert out == doc
    assert blocks == []


def test_closing_marker_of_other_variant_does_not_close() -> None:
    """A trigger closing marker never closes a note."""

    doc = "[!note:a]\nx\n[/!trigger]\n"
    assert CalloutPreprocessor(render).process(doc) == doc


def test_processing_output_again_is_noop() -> None:
    """Emitted containers no longer match the marker syntax."""

    preprocessor = CalloutPreprocessor(render)
    first = preprocessor.process("a\n\n[!note:n]\n*x*\n[/!note]\n\n[!trigger:t]\ny\n[/!trigger]\n")

    assert preprocessor.process(first) == first


def test_nested_same_variant_closes_at_first_marker() -> None:
    """The inner opening marker is content and the first closing marker wins."""

    doc = "[!note:outer]\na\n[!note:inner]\nb\n[/!note]\nc\n[/!note]\n"
    out, blocks = CalloutPreprocessor(identity).extract(doc)

    assert [b.id for b in blocks] == ["outer"]
    assert blocks[0].raw_content == "a\n[!note:inner]\nb\n"
    assert out.endswith("\nc\n[/!note]\n")


def test_closing_marker_may_repeat_the_id() -> None:
    """``[/!note:ID]`` also closes a note block."""

    blocks = CalloutPreprocessor(render).extract("[!note:a]\nx\n[/!note:a]\n")[1]
    assert [b.id for b in blocks] == ["a"]


def test_marker_with_invalid_id_is_plain_text() -> None:
    """Identifiers are limited to word characters and dashes."""

    doc = "[!note:has space]\nx\n[/!note]\n"
    assert CalloutPreprocessor(render).process(doc) == doc


def test_blocks_are_reported_in_document_order() -> None:
    """Blocks of both variants are collected in source order."""

    doc = (
        "[!trigger:t1]\na\n[/!trigger]\n"
        "[!note:n1]\nb\n[/!note]\n"
        "[!note:n2]\nc\n[/!note]\n"
    )
    blocks = CalloutPreprocessor(render).extract(doc)[1]

    assert [(b.variant, b.id) for b in blocks] == [
        (Variant.TRIGGER, "t1"),
        (Variant.NOTE, "n1"),
        (Variant.NOTE, "n2"),
    ]


def test_duplicate_ids_are_kept_and_reported(capsys) -> None:
    """Duplicate ids produce two containers and one warning per repeated id."""

    doc = "[!note:dup]\nfirst\n[/!note]\n[!trigger:dup]\nsecond\n[/!trigger]\n"
    out, blocks = CalloutPreprocessor(render).extract(doc)

    divs = BeautifulSoup(out, "html.parser").find_all(id="dup")
    assert [d.get_text() for d in divs] == ["first", "second"]
    assert capsys.readouterr().out == ""

    assert warn_duplicate_ids(all_callout_ids(blocks)) == ["dup"]
    assert warn_duplicate_ids(["dup", "x", "dup", "dup"]) == ["dup"]
    assert capsys.readouterr().out.count("duplicate callout id 'dup'") == 2


def test_scan_produces_segments_and_renders_once() -> None:
    """The scanner splits lines into plain text and rendered blocks."""

    calls: List[str] = []

    def counting_render(text: str) -> str:
        calls.append(text)
        return f"<p>{text.strip()}</p>"

    lines = ["a\n", "[!note:n]  \n", "x\n", "[/!note]\r\n", "b\n"]
    segments = scan(lines, Variant.NOTE, counting_render)

    assert segments == [
        PlainText(("a\n",)),
        CalloutBlock("n", Variant.NOTE, "x\n", "<p>x</p>", "\r\n"),
        PlainText(("b\n",)),
    ]
    assert calls == ["x\n"]


def test_extension_converts_callouts_inside_full_document() -> None:
    """The Markdown extension stores blocks on ``md.callouts``."""

    md = markdown.Markdown(extensions=[CalloutExtension()])
    html = md.convert("Intro\n\n[!note:alpha]\nHello *world*\n[/!note]\n\nOutro")
    soup = BeautifulSoup(html, "html.parser")

    div = soup.find(id="alpha")
    assert div.has_attr("hidden")
    assert div.find("em").get_text() == "world"
    assert [p.get_text() for p in soup.find_all("p", recursive=False)] == ["Intro", "Outro"]
    assert [b.id for b in md.callouts] == ["alpha"]

    md.reset()
    assert md.callouts == []


def test_extension_uses_given_renderer() -> None:
    """A custom renderer receives the raw block content."""

    md = markdown.Markdown(
        extensions=[CalloutExtension(render_markdown=lambda text: "<b>custom</b>")]
    )
    html = md.convert("[!trigger:t]\nanything\n[/!trigger]\n")

    assert BeautifulSoup(html, "html.parser").find(id="t").decode_contents() == "<b>custom</b>"


CODE_SAMPLE_DOC = (
    "[!note:n]\n"
    "Syntax:\n"
    "\n"
    "    example\n"
    "    [!trigger:t]\n"
    "    body\n"
    "    [/!trigger]\n"
    "[/!note]\n"
    "[!trigger:u]\n"
    "x\n"
    "[/!trigger]\n"
)


def test_variant_order_does_not_change_output() -> None:
    """Rendered block content is never scanned again for other variants."""

    by_note = CalloutPreprocessor(render, (Variant.NOTE, Variant.TRIGGER)).process(CODE_SAMPLE_DOC)
    by_trigger = CalloutPreprocessor(render, (Variant.TRIGGER, Variant.NOTE)).process(CODE_SAMPLE_DOC)

    assert by_note == by_trigger
    soup = BeautifulSoup(by_note, "html.parser")
    assert [d["id"] for d in soup.find_all(attrs={"data-callout": True})] == ["n", "u"]
    assert "[!trigger:t]" in soup.find(id="n").find("code").get_text()


def test_lines_are_split_on_newline_only() -> None:
    """Unicode line separators stay inside a line."""

    assert split_lines("a\u2028b\nc") == ["a\u2028b\n", "c"]
    assert split_lines("a\n") == ["a\n"]
    assert split_lines("") == []

    doc = "intro\u2028[!note:a]\nx\n[/!note]\n"
    assert CalloutPreprocessor(render).process(doc) == doc

    blocks = CalloutPreprocessor(identity).extract("[!note:a]\nx\x0cy\n[/!note]\n")[1]
    assert blocks[0].raw_content == "x\x0cy\n"


def test_nested_callout_ids_are_recorded() -> None:
    """Callouts rendered inside another callout are listed after their parent."""

    md = markdown.Markdown(extensions=[CalloutExtension()])
    md.convert("[!note:outer]\nsee\n\n[!trigger:inner]\ninner\n[/!trigger]\n[/!note]\n")

    assert [b.id for b in md.callouts] == ["outer"]
    assert md.callouts[0].nested_ids == ("inner",)
    assert all_callout_ids(md.callouts) == ["outer", "inner"]
