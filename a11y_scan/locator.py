"""Scan-scoped locators kept in a side table instead of on the document."""

from __future__ import annotations

import itertools

from bs4 import Tag

LOCATOR_PREFIX = "a11y-ref-"


class LocatorTable:
    """Maps node identity to an opaque locator string for one scan.

    Locators come from a monotonic counter, so two nodes flagged in the same
    scan never share one. ``reset`` starts a new scan; strings handed out
    before the reset may afterwards denote a different node.
    """

    def __init__(self) -> None:
        self._by_node: dict[int, str] = {}
        self._nodes: dict[str, Tag] = {}
        self._counter = itertools.count(1)

    def reset(self) -> None:
        self._by_node.clear()
        self._nodes.clear()
        self._counter = itertools.count(1)

    def locator_for(self, node: Tag) -> str:
        """Return the node's locator, assigning one on first use."""
        existing = self._by_node.get(id(node))
        if existing is not None:
            return existing
        locator = f"{LOCATOR_PREFIX}{next(self._counter)}"
        self._by_node[id(node)] = locator
        self._nodes[locator] = node
        return locator

    def resolve(self, locator: str) -> Tag | None:
        return self._nodes.get(locator)

    def __len__(self) -> int:
        return len(self._nodes)
