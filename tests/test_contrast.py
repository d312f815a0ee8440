"""Effective background and contrast evaluation tests."""

from __future__ import annotations

import pytest

from a11y_scan.contrast import effective_background, evaluate_contrast
from a11y_scan.dom import HtmlDocument


def _doc(body: str, head: str = "") -> HtmlDocument:
    return HtmlDocument(f"<html><head>{head}</head><body>{body}</body></html>")


def test_light_gray_text_on_white_is_serious() -> None:
    document = _doc('<p style="color: rgb(200,200,200)">Faint text</p>')
    (paragraph,) = document.query("p")
    sample = evaluate_contrast(document, paragraph)
    assert sample is not None
    assert sample.background == "rgb(255, 255, 255)"
    assert sample.requirement.ratio == 4.5
    assert sample.ratio == pytest.approx(1.67, abs=0.01)
    assert not sample.passes
    assert sample.severity == "serious"


def test_near_miss_is_moderate() -> None:
    document = _doc('<p style="color: #888">Almost readable</p>')
    (paragraph,) = document.query("p")
    sample = evaluate_contrast(document, paragraph)
    assert sample is not None
    assert 3.5 <= sample.ratio < 4.5
    assert sample.severity == "moderate"


def test_large_text_uses_three_to_one() -> None:
    document = _doc('<h1 style="color: #888">Large heading</h1>')
    (heading,) = document.query("h1")
    sample = evaluate_contrast(document, heading)
    assert sample is not None
    assert sample.requirement.large_text
    assert sample.passes


def test_background_comes_from_nearest_opaque_ancestor() -> None:
    document = _doc(
        '<div style="background-color: #000">'
        '<section style="background-color: rgba(255, 0, 0, 0.05)"><p>text</p></section>'
        "</div>"
    )
    (paragraph,) = document.query("p")
    assert effective_background(document, paragraph) == "rgb(0, 0, 0)"


def test_semi_transparent_ancestor_background_is_used_unblended() -> None:
    document = _doc('<div style="background-color: rgba(0, 0, 255, 0.3)"><p>text</p></div>')
    (paragraph,) = document.query("p")
    assert effective_background(document, paragraph) == "rgba(0, 0, 255, 0.3)"


def test_overlay_background_wins_when_mostly_opaque() -> None:
    document = _doc(
        '<p id="text" style="color: #777">Under the banner</p>'
        '<div style="position: fixed; left: 0; top: 0; width: 1280px; height: 60px; '
        'z-index: 3; background-color: rgba(0, 0, 0, 0.8)"></div>'
    )
    (paragraph,) = document.query("#text")
    assert effective_background(document, paragraph) == "rgba(0, 0, 0, 0.8)"


def test_faint_overlay_is_ignored() -> None:
    document = _doc(
        '<p id="text">Under the banner</p>'
        '<div style="position: fixed; left: 0; top: 0; width: 1280px; height: 60px; '
        'z-index: 3; background-color: rgba(0, 0, 0, 0.2)"></div>'
    )
    (paragraph,) = document.query("#text")
    assert effective_background(document, paragraph) == "rgb(255, 255, 255)"


def test_unparsable_colors_and_tiny_boxes_are_skipped() -> None:
    document = _doc(
        '<p id="mix" style="color: color-mix(in srgb, red 50%, blue)">Mixed</p>'
        '<p id="tiny" style="width: 5px; color: #ccc">Tiny</p>'
        '<p id="empty" style="color: #ccc"> </p>'
    )
    for paragraph in document.query("p"):
        assert evaluate_contrast(document, paragraph) is None, paragraph.get("id")


def test_custom_property_colors_are_resolved_before_contrast() -> None:
    document = _doc(
        '<p style="color: var(--muted)">Faint</p>',
        head="<style>:root { --muted: #ccc }</style>",
    )
    (paragraph,) = document.query("p")
    sample = evaluate_contrast(document, paragraph)
    assert sample is not None
    assert sample.foreground == "rgb(204, 204, 204)"
    assert not sample.passes
