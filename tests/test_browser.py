"""Browser-backed document tests.

Most tests drive ``BrowserDocument`` with a stand-in page that replays a
recorded snapshot; the last one renders in real Chromium when it is installed.
"""

from __future__ import annotations

from typing import Any

import pytest

from a11y_scan.browser import (
    INDEX_ATTRIBUTE,
    BrowserDocument,
    BrowserError,
    open_browser_document,
)
from a11y_scan.dom import Rect
from a11y_scan.rules.color_contrast import ColorContrastRule
from a11y_scan.rules.image_alt_text import ImageAltTextRule
from a11y_scan.scanner import scan_document

MARKUP = (
    f'<html {INDEX_ATTRIBUTE}="0"><head {INDEX_ATTRIBUTE}="1"></head>'
    f'<body {INDEX_ATTRIBUTE}="2"><p {INDEX_ATTRIBUTE}="3">Faint</p>'
    f'<img {INDEX_ATTRIBUTE}="4" src="a.png"></body></html>'
)


def _record(box: list[float], **style: str) -> dict[str, Any]:
    computed = {
        "display": "block",
        "visibility": "visible",
        "opacity": "1",
        "color": "rgb(0, 0, 0)",
        "background-color": "rgba(0, 0, 0, 0)",
        "font-size": "16px",
        "font-weight": "400",
        "line-height": "normal",
        "cursor": "auto",
        "position": "static",
        "z-index": "auto",
        "pointer-events": "auto",
    }
    computed.update({name.replace("_", "-"): value for name, value in style.items()})
    return {"style": computed, "box": box}


RECORDS = [
    _record([0, 0, 1280, 800]),
    _record([0, 0, 0, 0], display="none"),
    _record([8, 8, 1264, 150], background_color="rgb(255, 255, 255)"),
    _record([8, 8, 1264, 18], color="rgb(204, 204, 204)", line_height="18px"),
    _record([8, 42, 100, 100]),
]


class RecordedPage:
    """Answers the snapshot and hit-test scripts from canned data."""

    def __init__(self, hit: Any = -1) -> None:
        self.hit = hit
        self.hit_tests: list[Any] = []

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        if "elementFromPoint" in expression:
            self.hit_tests.append(arg)
            return self.hit
        assert arg[0] == INDEX_ATTRIBUTE
        return {"markup": MARKUP, "records": RECORDS}


def test_snapshot_maps_styles_and_boxes_to_parsed_nodes() -> None:
    document = BrowserDocument(RecordedPage())
    (paragraph,) = document.query("p")
    (head,) = document.query("head")
    style = document.computed_style(paragraph)
    assert style.color == "rgb(204, 204, 204)"
    assert style.font_size == 16.0
    assert style.line_height == pytest.approx(18 / 16)
    assert style.z_index is None
    assert document.bounding_box(paragraph) == Rect(8.0, 8.0, 1264.0, 18.0)
    assert document.computed_style(head).display == "none"
    assert document.computed_style(document.body).background_color == "rgb(255, 255, 255)"


def test_snapshot_index_attribute_is_stripped_from_reports() -> None:
    document = BrowserDocument(RecordedPage())
    (image,) = document.query("img")
    assert INDEX_ATTRIBUTE not in document.snippet(image)
    assert document.query(f"[{INDEX_ATTRIBUTE}]") == []


@pytest.mark.parametrize(("hit", "expected"), [(3, "p"), (4, "img"), (-1, None), (99, None)])
def test_element_at_point_maps_live_hit_test(hit: int, expected: str | None) -> None:
    page = RecordedPage(hit=hit)
    document = BrowserDocument(page)
    top = document.element_at_point(20.5, 12.0)
    assert (top.name if top is not None else None) == expected
    assert page.hit_tests == [[20.5, 12.0]]


def test_rules_run_against_browser_snapshot() -> None:
    document = BrowserDocument(RecordedPage(hit=3))
    result = scan_document(document, [ImageAltTextRule(), ColorContrastRule()])
    assert [item.rule_id for item in result.violations] == ["image-alt-text", "color-contrast"]
    contrast = result.violations[1]
    assert "Background: rgb(255, 255, 255)" in contrast.description
    assert document.resolve(contrast.locator) is document.query("p")[0]


def test_open_browser_document_needs_exactly_one_source() -> None:
    with pytest.raises(ValueError):
        with open_browser_document():
            pass
    with pytest.raises(ValueError):
        with open_browser_document(url="about:blank", markup="<p>x</p>"):
            pass


@pytest.mark.browser
def test_chromium_renders_authored_colors() -> None:
    markup = (
        "<html><head><style>:root { --muted: hsl(0, 0%, 80%) }</style></head><body>"
        '<p style="color: var(--muted)">Faint</p><img src="a.png" width="20" height="20">'
        "</body></html>"
    )
    try:
        with open_browser_document(markup=markup) as document:
            result = scan_document(document)
    except BrowserError as exc:
        pytest.skip(f"Chromium is not available: {exc}")
    rule_ids = {item.rule_id for item in result.violations}
    assert {"image-alt-text", "color-contrast"} <= rule_ids
    assert result.failed_rules == []
