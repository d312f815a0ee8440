"""Effective background resolution and text contrast evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from bs4 import Tag

from a11y_scan.color import (
    WHITE,
    ContrastRequirement,
    contrast_ratio,
    parse_color,
    required_contrast,
)
from a11y_scan.dom import DocumentAccessor, is_descendant, iter_ancestors

MIN_TEXT_BOX = 10.0
OVERLAY_MIN_ALPHA = 0.5
ANCESTOR_MIN_ALPHA = 0.1


@dataclass(frozen=True, slots=True)
class ContrastSample:
    """Measured contrast for one text-bearing node."""

    foreground: str
    background: str
    ratio: float
    requirement: ContrastRequirement

    @property
    def passes(self) -> bool:
        return self.ratio >= self.requirement.ratio

    @property
    def severity(self) -> Literal["serious", "moderate"]:
        return "serious" if self.ratio < self.requirement.ratio - 1 else "moderate"


def effective_background(document: DocumentAccessor, node: Tag) -> str:
    """Return the background color actually painted behind a node.

    An element painted over the node's center wins when its background is at
    least half opaque. Otherwise the first background on the node or its
    ancestors with alpha of at least 0.1 is used, falling back to white.
    """
    center_x, center_y = document.bounding_box(node).center
    top = document.element_at_point(center_x, center_y)
    if top is not None and top is not node and not is_descendant(top, node):
        overlay = document.computed_style(top).background_color
        parsed = parse_color(overlay)
        if parsed is not None and parsed[1] >= OVERLAY_MIN_ALPHA:
            return overlay

    for current in (node, *iter_ancestors(node)):
        background = document.computed_style(current).background_color
        parsed = parse_color(background)
        if parsed is not None and parsed[1] < ANCESTOR_MIN_ALPHA:
            continue
        return background
    return WHITE


def evaluate_contrast(document: DocumentAccessor, node: Tag) -> ContrastSample | None:
    """Measure a node's text contrast, or ``None`` when there is not enough data.

    Nodes without text, with boxes under 10x10, or with colors that cannot be
    parsed are skipped.
    """
    if not document.text(node).strip():
        return None
    box = document.bounding_box(node)
    if box.width < MIN_TEXT_BOX or box.height < MIN_TEXT_BOX:
        return None

    style = document.computed_style(node)
    background = effective_background(document, node)
    foreground_parsed = parse_color(style.color)
    background_parsed = parse_color(background)
    if foreground_parsed is None or background_parsed is None:
        return None

    return ContrastSample(
        foreground=style.color,
        background=background,
        ratio=contrast_ratio(foreground_parsed[0], background_parsed[0]),
        requirement=required_contrast(style.font_size, style.font_weight),
    )
