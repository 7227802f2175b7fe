from __future__ import annotations

from litschema.markup import parse_document
from litschema.markup.inline import blocks_to_text, find_references, leading_reference, plain_text


def test_plain_text_strips_inline_markup() -> None:
    text = "Use **bold** and *em* with `code` and (Task, #task)."

    assert plain_text(text) == "Use bold and em with code and Task."


def test_plain_text_keeps_snake_case() -> None:
    assert plain_text("set max_in_flight to _1_") == "set max_in_flight to 1"


def test_plain_text_collapses_whitespace() -> None:
    assert plain_text("  spread\n   over\tlines  ") == "spread over lines"


def test_find_references_in_order() -> None:
    refs = find_references("(A, #a) then\n(B, #b)", 10)

    assert [(r.target, r.line) for r in refs] == [("a", 10), ("b", 11)]


def test_wrapped_reference_text_is_collapsed() -> None:
    refs = find_references("see (Do\n   step, #do-step)", 3)

    assert [(r.text, r.target, r.line) for r in refs] == [("Do step", "do-step", 3)]
    assert plain_text("see (Do\n   step, #do-step)") == "see Do step"


def test_leading_reference() -> None:
    assert leading_reference("(Get, #get-step): string", 4).target == "get-step"
    assert leading_reference("name: (Get, #get-step)", 4) is None


def test_blocks_to_text_skips_code() -> None:
    doc = parse_document(
        "a.lit",
        "First *paragraph*.\n\n```yaml\nsecret: code\n```\n\nSecond paragraph.\n",
    )

    assert blocks_to_text(doc.blocks) == "First paragraph.\n\nSecond paragraph."


def test_blocks_to_text_renders_nested_terms() -> None:
    doc = parse_document("a.lit", "- `fast`\n    Go fast.\n- `slow`\n    Go slow.\n")

    assert blocks_to_text(doc.blocks) == "fast: Go fast.\nslow: Go slow."
