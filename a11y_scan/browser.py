"""Document access backed by a live Chromium page.

``BrowserDocument`` snapshots the page once: every element's computed style
and bounding box come from ``getComputedStyle`` and ``getBoundingClientRect``,
and the serialized DOM is parsed with BeautifulSoup so rules see the same
``Tag`` nodes as with ``HtmlDocument``. Hit testing stays live and goes
through ``document.elementFromPoint``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Protocol

from bs4 import BeautifulSoup, Tag
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from a11y_scan.dom import DEFAULT_VIEWPORT, ComputedStyle, Rect, SoupDocument, resolve_style

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30000
INDEX_ATTRIBUTE = "data-a11y-scan-index"
STYLE_PROPERTIES = (
    "display",
    "visibility",
    "opacity",
    "color",
    "background-color",
    "font-size",
    "font-weight",
    "line-height",
    "cursor",
    "position",
    "z-index",
    "pointer-events",
)

_SNAPSHOT_SCRIPT = """
([attribute, properties]) => {
  const elements = Array.from(document.querySelectorAll('*'));
  window.__a11yScanElements = elements;
  const records = elements.map((element, index) => {
    element.setAttribute(attribute, String(index));
    const computed = window.getComputedStyle(element);
    const style = {};
    for (const name of properties) {
      style[name] = computed.getPropertyValue(name);
    }
    const rect = element.getBoundingClientRect();
    return {
      style,
      box: [rect.x + window.scrollX, rect.y + window.scrollY, rect.width, rect.height],
    };
  });
  const markup = document.documentElement.outerHTML;
  for (const element of elements) {
    element.removeAttribute(attribute);
  }
  return { markup, records };
}
"""

_HIT_TEST_SCRIPT = """
([x, y]) => {
  const element = document.elementFromPoint(x - window.scrollX, y - window.scrollY);
  if (!element || !window.__a11yScanElements) {
    return -1;
  }
  return window.__a11yScanElements.indexOf(element);
}
"""


class BrowserError(RuntimeError):
    """Raised when the browser cannot be started or the page cannot be loaded."""


class ScriptPage(Protocol):
    """The part of a Playwright ``Page`` the document reads through."""

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        """Run a JavaScript function in the page and return its result."""


class BrowserDocument(SoupDocument):
    """Rendered document read from a Playwright page."""

    def __init__(self, page: ScriptPage) -> None:
        snapshot = page.evaluate(_SNAPSHOT_SCRIPT, [INDEX_ATTRIBUTE, list(STYLE_PROPERTIES)])
        super().__init__(BeautifulSoup(snapshot["markup"], "lxml"))
        self.page = page
        self._by_index: dict[int, Tag] = {}
        records: list[dict[str, Any]] = snapshot["records"]
        for tag in self.soup.find_all(True):
            raw_index = tag.attrs.pop(INDEX_ATTRIBUTE, None)
            index = _as_index(raw_index)
            if index is None or index >= len(records):
                continue
            record = records[index]
            self._by_index[index] = tag
            self._styles[id(tag)] = resolve_style(_declared(record["style"]), ComputedStyle())
            x, y, width, height = (float(item) for item in record["box"])
            self._boxes[id(tag)] = Rect(x, y, width, height)
        logger.debug(
            "[BrowserDocument] Snapshot of %d elements, %d matched",
            len(records),
            len(self._by_index),
        )

    def element_at_point(self, x: float, y: float) -> Tag | None:
        index = self.page.evaluate(_HIT_TEST_SCRIPT, [x, y])
        if not isinstance(index, int):
            return None
        return self._by_index.get(index)


@contextmanager
def open_browser_document(
    *,
    url: str | None = None,
    markup: str | None = None,
    viewport: tuple[int, int] = DEFAULT_VIEWPORT,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> Iterator[BrowserDocument]:
    """Load a URL or raw markup in headless Chromium and yield its document.

    The page stays open until the block exits, so hit testing works while
    rules run.
    """
    if (url is None) == (markup is None):
        raise ValueError("Provide exactly one of url or markup.")
    width, height = viewport
    try:
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(args=["--no-sandbox"], headless=True)
            try:
                context = browser.new_context(viewport={"width": width, "height": height})
                page = context.new_page()
                page.set_default_timeout(timeout_ms)
                if url is not None:
                    page.goto(url, wait_until="load")
                else:
                    page.set_content(markup or "", wait_until="load")
                yield BrowserDocument(page)
            finally:
                browser.close()
    except PlaywrightError as exc:
        raise BrowserError(f"Browser rendering failed: {exc}") from exc


def _declared(style: dict[str, Any]) -> dict[str, str]:
    return {name: str(value) for name, value in style.items() if value not in (None, "")}


def _as_index(raw: object) -> int | None:
    if not isinstance(raw, str):
        return None
    try:
        return int(raw)
    except ValueError:
        return None
