"""Locator inspection for reported violations."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from a11y_scan.dom import DocumentAccessor, Rect

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Highlight:
    """Presentational view of one located node."""

    locator: str
    tag: str
    box: Rect
    snippet: str

    def describe(self) -> str:
        return (
            f"{self.locator} <{self.tag}> at ({self.box.x:.0f}, {self.box.y:.0f}) "
            f"size {self.box.width:.0f}x{self.box.height:.0f}\n{self.snippet}"
        )


class Inspector:
    """Highlights nodes by locator; unknown or stale locators are ignored."""

    def __init__(self, document: DocumentAccessor) -> None:
        self._document = document
        self._active: Highlight | None = None

    @property
    def active(self) -> Highlight | None:
        return self._active

    def highlight(self, locator: str) -> Highlight | None:
        node = self._document.resolve(locator)
        if node is None:
            logger.debug(f"[Inspector] Locator {locator} did not resolve")
            return None
        self._active = Highlight(
            locator=locator,
            tag=node.name,
            box=self._document.bounding_box(node),
            snippet=self._document.snippet(node),
        )
        return self._active

    def clear(self) -> None:
        self._active = None
