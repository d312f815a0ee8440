"""Static document model tests: cascade, layout and hit testing."""

from __future__ import annotations

from pathlib import Path

import pytest

from a11y_scan.dom import (
    HtmlDocument,
    Rect,
    iter_ancestors,
    parse_declarations,
    resolve_var_references,
)


def _doc(body: str, head: str = "") -> HtmlDocument:
    return HtmlDocument(f"<html><head>{head}</head><body>{body}</body></html>")


def test_inline_style_beats_stylesheet_and_important_beats_inline() -> None:
    document = _doc(
        '<p id="a" class="note" style="color: blue">A</p><p id="b" class="note">B</p>'
        '<p id="c" style="color: blue">C</p>',
        head="<style>.note { color: red } #c { color: green !important }</style>",
    )
    first, second, third = document.query("p")
    assert document.computed_style(first).color == "rgb(0, 0, 255)"
    assert document.computed_style(second).color == "rgb(255, 0, 0)"
    assert document.computed_style(third).color == "rgb(0, 128, 0)"


def test_more_specific_selector_wins_regardless_of_order() -> None:
    document = _doc(
        '<p id="x" class="c">text</p>',
        head="<style>#x { color: #000 } p.c { color: #fff }</style>",
    )
    (paragraph,) = document.query("p")
    assert document.computed_style(paragraph).color == "rgb(0, 0, 0)"


def test_color_and_font_properties_inherit() -> None:
    document = _doc('<div style="color: #333; font-size: 20px"><span>hi</span></div>')
    (span,) = document.query("span")
    style = document.computed_style(span)
    assert style.color == "rgb(51, 51, 51)"
    assert style.font_size == 20.0


def test_background_does_not_inherit_and_shorthand_is_read() -> None:
    document = _doc('<div style="background: url(x.png) #000"><p>text</p></div>')
    div, paragraph = document.query("div, p")
    assert document.computed_style(div).background_color == "rgb(0, 0, 0)"
    assert document.computed_style(paragraph).background_color == "rgba(0, 0, 0, 0)"


def test_headings_get_user_agent_sizes_and_weight() -> None:
    document = _doc("<h1>Title</h1><h4>Small</h4>")
    h1, h4 = document.query("h1, h4")
    assert document.computed_style(h1).font_size == 32.0
    assert document.computed_style(h1).font_weight == 700
    assert document.computed_style(h4).font_size == 16.0


def test_block_flow_stacks_siblings_vertically() -> None:
    document = _doc("<p>one</p><p>two</p>")
    first, second = document.query("p")
    first_box = document.bounding_box(first)
    second_box = document.bounding_box(second)
    assert first_box.width == 1280
    assert first_box.height > 0
    assert second_box.y == pytest.approx(first_box.y + first_box.height)


def test_display_none_collapses_subtree() -> None:
    document = _doc('<div style="display:none"><p>gone</p></div><img src="a.png">')
    paragraph, image = document.query("p, img")
    assert document.bounding_box(paragraph).is_empty()
    assert document.bounding_box(image) == Rect(0.0, 0.0, 100.0, 100.0)


def test_replaced_elements_use_size_attributes() -> None:
    document = _doc('<img src="a.png" width="40" height="30">')
    (image,) = document.query("img")
    box = document.bounding_box(image)
    assert (box.width, box.height) == (40.0, 30.0)


def test_element_at_point_prefers_positioned_overlay() -> None:
    document = _doc(
        '<p id="text">Under the banner</p>'
        '<div id="overlay" style="position: fixed; left: 0; top: 0; width: 1280px; '
        'height: 100px; z-index: 10; background-color: #000"></div>'
    )
    (paragraph,) = document.query("#text")
    center_x, center_y = document.bounding_box(paragraph).center
    top = document.element_at_point(center_x, center_y)
    assert top is not None
    assert top.get("id") == "overlay"


def test_element_at_point_skips_pointer_events_none() -> None:
    document = _doc(
        '<p id="text">Under</p>'
        '<div style="position: absolute; left: 0; top: 0; width: 200px; height: 200px; '
        'z-index: 5; pointer-events: none"></div>'
    )
    (paragraph,) = document.query("#text")
    top = document.element_at_point(*document.bounding_box(paragraph).center)
    assert top is paragraph


def test_text_ignores_scripts_and_comments() -> None:
    document = _doc("<div>Hello <!-- note --><script>var x = 1;</script><b>world</b></div>")
    (div,) = document.query("div")
    assert document.text(div) == "Hello world"


def test_snippet_is_truncated() -> None:
    document = _doc(f"<p>{'x' * 500}</p>")
    (paragraph,) = document.query("p")
    assert len(document.snippet(paragraph)) == 200
    assert document.snippet(paragraph).startswith("<p>")


def test_locate_and_resolve_round_trip() -> None:
    document = _doc("<p>a</p><p>b</p>")
    first, second = document.query("p")
    first_locator = document.locate(first)
    assert document.locate(first) == first_locator
    assert document.locate(second) != first_locator
    assert document.resolve(first_locator) is first
    assert document.resolve("a11y-ref-999") is None


def test_iter_ancestors_is_nearest_first_and_honors_stop() -> None:
    document = _doc("<main><section><p>x</p></section></main>")
    (paragraph,) = document.query("p")
    assert [tag.name for tag in iter_ancestors(paragraph)] == ["section", "main", "body", "html"]
    assert [tag.name for tag in iter_ancestors(paragraph, stop=document.body)] == [
        "section",
        "main",
    ]


def test_parse_declarations_tracks_important() -> None:
    parsed = parse_declarations("color: red !important; ; bogus; margin:0")
    assert parsed == {"color": ("red", True), "margin": ("0", False)}


def test_media_queries_are_skipped() -> None:
    document = _doc(
        "<p>x</p>",
        head="<style>@media print { p { color: red } } p { color: blue }</style>",
    )
    (paragraph,) = document.query("p")
    assert document.computed_style(paragraph).color == "rgb(0, 0, 255)"


def test_from_file_reads_markup(tmp_path: Path) -> None:
    page = tmp_path / "page.html"
    page.write_text("<html><body><h1>Hi</h1></body></html>", encoding="utf-8")
    document = HtmlDocument.from_file(page, viewport=(800, 600))
    assert document.viewport == (800, 600)
    assert [tag.name for tag in document.query("h1")] == ["h1"]


def test_from_file_detects_declared_encoding(tmp_path: Path) -> None:
    page = tmp_path / "latin.html"
    markup = '<html><head><meta charset="iso-8859-1"></head><body><p>Café</p></body></html>'
    page.write_bytes(markup.encode("latin-1"))
    document = HtmlDocument.from_file(page)
    (paragraph,) = document.query("p")
    assert document.text(paragraph) == "Café"


def test_empty_markup_renders_an_empty_page() -> None:
    document = HtmlDocument("")
    assert document.root.name == "html"
    assert document.body.name == "body"
    assert [tag.name for tag in document.query("*")] == ["html", "head", "body"]


@pytest.mark.parametrize(
    "declarations",
    [
        "height: .",
        "width: 1.2.5px",
        "font-size: .%",
        "line-height: ..",
        "font-weight: inf",
        "opacity: nan",
        "left: -",
    ],
)
def test_malformed_numbers_are_treated_as_undeclared(declarations: str) -> None:
    document = _doc(f'<div style="{declarations}">x</div>')
    (div,) = document.query("div")
    style = document.computed_style(div)
    assert style.width is None
    assert style.height is None
    assert style.left is None
    assert style.font_size == 16.0
    assert style.font_weight == 400
    assert style.line_height == 1.2
    assert style.opacity == 1.0


def test_custom_properties_inherit_and_feed_var() -> None:
    document = _doc(
        '<section style="--fg: #333; --Accent: rgb(0, 0, 255)">'
        '<p id="inherited" style="color: var(--fg)">a</p>'
        '<p id="case" style="color: var(--Accent)">b</p>'
        '<p id="fallback" style="color: var(--missing, #fff)">c</p>'
        '<p id="nested" style="color: var(--missing, var(--fg))">d</p>'
        '<p id="unresolved" style="color: var(--missing)">e</p>'
        "</section>",
        head="<style>section { color: #111 }</style>",
    )
    colors = {
        str(tag.get("id")): document.computed_style(tag).color for tag in document.query("p")
    }
    assert colors == {
        "inherited": "rgb(51, 51, 51)",
        "case": "rgb(0, 0, 255)",
        "fallback": "rgb(255, 255, 255)",
        "nested": "rgb(51, 51, 51)",
        "unresolved": "rgb(17, 17, 17)",
    }


def test_var_in_background_shorthand_and_custom_property_chain() -> None:
    document = _doc(
        '<div style="--base: #000; --panel: var(--base); background: var(--panel) url(x.png)">'
        "<p>text</p></div>"
    )
    (div,) = document.query("div")
    assert document.computed_style(div).background_color == "rgb(0, 0, 0)"


def test_self_referencing_custom_property_is_dropped() -> None:
    document = _doc('<p style="--loop: var(--loop); color: var(--loop, red)">x</p>')
    (paragraph,) = document.query("p")
    assert document.computed_style(paragraph).color == "rgb(255, 0, 0)"


def test_parse_declarations_keeps_custom_property_case() -> None:
    parsed = parse_declarations("--Brand-Color: #fff; COLOR: var(--Brand-Color)")
    assert parsed == {
        "--Brand-Color": ("#fff", False),
        "color": ("var(--Brand-Color)", False),
    }


def test_resolve_var_references() -> None:
    custom = {"--a": "1px", "--b": "var(--a)"}
    assert resolve_var_references("var(--a) solid", custom) == "1px solid"
    assert resolve_var_references("var(--b)", custom) == "1px"
    assert resolve_var_references("var(--nope, 2px)", custom) == "2px"
    assert resolve_var_references("var(--nope)", custom) is None
    assert resolve_var_references("plain", custom) == "plain"
