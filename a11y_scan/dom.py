"""Read-only document access over parsed HTML.

``HtmlDocument`` gives rules the same capabilities a browser page would:
selector queries, computed style, box geometry and hit testing. Rendering is
a deterministic static approximation: the cascade covers user-agent
defaults, ``<style>`` blocks and inline styles, custom properties inherit and
feed ``var()``, and layout is a simple block flow where every in-flow element
stacks below its previous sibling. ``a11y_scan.browser`` provides the same
capabilities from a live browser page.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import soupsieve
from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from a11y_scan.color import TRANSPARENT, extract_color_token, normalize_css_color
from a11y_scan.locator import LocatorTable

DEFAULT_VIEWPORT = (1280, 800)
SNIPPET_LIMIT = 200

_UA_HIDDEN_TAGS = {
    "head",
    "script",
    "style",
    "title",
    "meta",
    "link",
    "base",
    "template",
    "noscript",
}
_NON_TEXT_CONTAINERS = {"script", "style", "template", "noscript", "head"}
_HEADING_FONT_SIZES = {
    "h1": 32.0,
    "h2": 24.0,
    "h3": 18.72,
    "h4": 16.0,
    "h5": 13.28,
    "h6": 10.72,
}
_BOLD_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6", "th", "b", "strong"}
_REPLACED_SIZES = {
    "img": (100.0, 100.0),
    "video": (300.0, 150.0),
    "canvas": (300.0, 150.0),
    "iframe": (300.0, 150.0),
    "svg": (300.0, 150.0),
    "object": (300.0, 150.0),
    "embed": (300.0, 150.0),
    "select": (150.0, 21.0),
    "textarea": (150.0, 36.0),
    "progress": (160.0, 16.0),
    "meter": (80.0, 16.0),
}
_INPUT_SIZES = {
    "checkbox": (13.0, 13.0),
    "radio": (13.0, 13.0),
    "range": (129.0, 16.0),
    "color": (50.0, 27.0),
    "image": (100.0, 100.0),
}
_DEFAULT_INPUT_SIZE = (150.0, 21.0)
_MIN_BUTTON_HEIGHT = 21.0
_SIZE_ATTRIBUTE_TAGS = {"img", "video", "canvas", "iframe", "svg", "object", "embed", "input"}
_FONT_SIZE_KEYWORDS = {
    "xx-small": 9.0,
    "x-small": 10.0,
    "small": 13.0,
    "medium": 16.0,
    "large": 18.0,
    "x-large": 24.0,
    "xx-large": 32.0,
}
_ROOT_FONT_SIZE = 16.0
_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)")
_LENGTH_RE = re.compile(r"([-+]?(?:\d+\.?\d*|\.\d+))\s*(px|pt|em|rem|%)?", re.IGNORECASE)
_CSS_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_VAR_RE = re.compile(r"var\(\s*(--[\w-]+)\s*(?:,\s*([^()]*(?:\([^()]*\)[^()]*)*))?\)")
_MAX_VAR_DEPTH = 16

_CascadeKey = tuple[int, int, tuple[int, int, int], int]


@dataclass(frozen=True, slots=True)
class Rect:
    """An axis-aligned box in document coordinates."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True, slots=True)
class ComputedStyle:
    """The subset of computed style the rules read."""

    display: str = "block"
    visibility: str = "visible"
    opacity: float = 1.0
    color: str = "rgb(0, 0, 0)"
    background_color: str = TRANSPARENT
    font_size: float = _ROOT_FONT_SIZE
    font_weight: int = 400
    line_height: float = 1.2
    cursor: str = "auto"
    position: str = "static"
    z_index: int | None = None
    pointer_events: str = "auto"
    width: float | None = None
    height: float | None = None
    left: float | None = None
    top: float | None = None


class DocumentAccessor(Protocol):
    """Read-only capability over a rendered document."""

    root: Tag
    body: Tag
    locators: LocatorTable

    def query(self, selector: str, within: Tag | None = None) -> list[Tag]:
        """Return matching nodes in document order."""

    def computed_style(self, node: Tag) -> ComputedStyle:
        """Return the node's computed style."""

    def bounding_box(self, node: Tag) -> Rect:
        """Return the node's box in document coordinates."""

    def element_at_point(self, x: float, y: float) -> Tag | None:
        """Return the topmost rendered node at a point."""

    def text(self, node: Tag) -> str:
        """Return the node's rendered text content."""

    def snippet(self, node: Tag) -> str:
        """Return a truncated markup excerpt for reports."""

    def locate(self, node: Tag) -> str:
        """Return a scan-scoped locator for the node."""

    def resolve(self, locator: str) -> Tag | None:
        """Resolve a locator issued during the current scan."""


class SoupDocument:
    """Parsed markup plus the style and geometry tables a renderer fills in."""

    def __init__(self, soup: BeautifulSoup) -> None:
        self.soup = soup
        root = soup.find("html")
        if not isinstance(root, Tag):
            # Empty or comment-only input still renders as an empty page.
            root = soup.new_tag("html")
            root.append(soup.new_tag("head"))
            root.append(soup.new_tag("body"))
            soup.append(root)
        self.root = root
        body = soup.find("body")
        self.body = body if isinstance(body, Tag) else root
        self.locators = LocatorTable()
        self._styles: dict[int, ComputedStyle] = {}
        self._boxes: dict[int, Rect] = {}

    def query(self, selector: str, within: Tag | None = None) -> list[Tag]:
        scope = within if within is not None else self.soup
        return list(scope.select(selector))

    def computed_style(self, node: Tag) -> ComputedStyle:
        return self._styles.get(id(node), ComputedStyle())

    def bounding_box(self, node: Tag) -> Rect:
        return self._boxes.get(id(node), Rect(0.0, 0.0, 0.0, 0.0))

    def text(self, node: Tag) -> str:
        parts: list[str] = []
        for string in node.find_all(string=True):
            if isinstance(string, Comment):
                continue
            if any(parent.name in _NON_TEXT_CONTAINERS for parent in _string_parents(string, node)):
                continue
            parts.append(str(string))
        return "".join(parts)

    def snippet(self, node: Tag) -> str:
        return str(node)[:SNIPPET_LIMIT]

    def locate(self, node: Tag) -> str:
        return self.locators.locator_for(node)

    def resolve(self, locator: str) -> Tag | None:
        return self.locators.resolve(locator)


class HtmlDocument(SoupDocument):
    """Static rendering of an HTML document parsed with BeautifulSoup."""

    def __init__(
        self,
        markup: str | bytes,
        *,
        viewport: tuple[int, int] = DEFAULT_VIEWPORT,
        parser: str = "lxml",
    ) -> None:
        # Bytes go through BeautifulSoup's encoding detection.
        super().__init__(BeautifulSoup(markup, parser))
        self.viewport = viewport
        self._tags: list[Tag] = list(self.soup.find_all(True))
        self._custom: dict[int, dict[str, str]] = {}
        self._stacking: dict[int, int] = {}
        self._compute_styles()
        self._compute_layout()

    @classmethod
    def from_file(
        cls,
        path: Path,
        *,
        viewport: tuple[int, int] = DEFAULT_VIEWPORT,
    ) -> HtmlDocument:
        return cls(path.read_bytes(), viewport=viewport)

    def element_at_point(self, x: float, y: float) -> Tag | None:
        best: Tag | None = None
        best_key: tuple[int, int] | None = None
        for index, tag in enumerate(self._tags):
            style = self._styles[id(tag)]
            if style.visibility != "visible" or style.pointer_events == "none":
                continue
            if not self._boxes[id(tag)].contains(x, y):
                continue
            key = (self._stacking[id(tag)], index)
            if best_key is None or key > best_key:
                best = tag
                best_key = key
        return best

    def _compute_styles(self) -> None:
        declared = self._cascade()
        for tag in self._tags:
            parent_style = self._styles.get(id(tag.parent)) if tag.parent is not None else None
            own = declared.get(id(tag), {})
            custom = _custom_properties(own, self._custom.get(id(tag.parent), {}))
            self._custom[id(tag)] = custom
            self._styles[id(tag)] = resolve_style(
                _substitute_declarations(own, custom),
                parent_style or ComputedStyle(),
            )

    def _cascade(self) -> dict[int, dict[str, str]]:
        # Winning declaration per property, keyed by (important, origin, specificity, order).
        winners: dict[int, dict[str, tuple[_CascadeKey, str]]] = {}

        def apply(
            tag: Tag,
            declarations: dict[str, tuple[str, bool]],
            origin: int,
            spec: tuple[int, int, int],
            order: int,
        ) -> None:
            slot = winners.setdefault(id(tag), {})
            for name, (value, important) in declarations.items():
                key = (int(important), origin, spec, order)
                current = slot.get(name)
                if current is None or key >= current[0]:
                    slot[name] = (key, value)

        for tag in self._tags:
            apply(tag, _user_agent_declarations(tag), 0, (0, 0, 0), 0)

        order = 0
        for style_tag in self.soup.find_all("style"):
            for selector_text, body in _iter_css_rules(style_tag.get_text()):
                declarations = parse_declarations(body)
                if not declarations:
                    continue
                for selector in selector_text.split(","):
                    selector = selector.strip()
                    if not selector:
                        continue
                    order += 1
                    try:
                        matched = self.soup.select(selector)
                    except (soupsieve.SelectorSyntaxError, NotImplementedError, ValueError):
                        continue
                    spec = _specificity(selector)
                    for tag in matched:
                        apply(tag, declarations, 1, spec, order)

        for tag in self._tags:
            inline = tag.get("style")
            if isinstance(inline, str) and inline.strip():
                apply(tag, parse_declarations(inline), 2, (1, 0, 0), 0)

        return {
            tag_id: {name: value for name, (_key, value) in slot.items()}
            for tag_id, slot in winners.items()
        }

    def _compute_layout(self) -> None:
        viewport_width, viewport_height = (float(item) for item in self.viewport)
        suppressed: dict[int, bool] = {}
        for tag in self._tags:
            parent = tag.parent
            parent_suppressed = suppressed.get(id(parent), False) if parent is not None else False
            suppressed[id(tag)] = parent_suppressed or self._styles[id(tag)].display == "none"

        widths: dict[int, float] = {}
        for tag in self._tags:
            style = self._styles[id(tag)]
            parent_width = widths.get(id(tag.parent), viewport_width)
            intrinsic = _intrinsic_size(tag)
            if suppressed[id(tag)]:
                widths[id(tag)] = 0.0
            elif style.width is not None:
                widths[id(tag)] = style.width
            elif intrinsic is not None:
                widths[id(tag)] = intrinsic[0]
            else:
                widths[id(tag)] = parent_width

        heights: dict[int, float] = {}
        own_text: dict[int, float] = {}
        for tag in reversed(self._tags):
            style = self._styles[id(tag)]
            own_text[id(tag)] = _own_text_height(tag, style)
            if suppressed[id(tag)]:
                heights[id(tag)] = 0.0
                continue
            intrinsic = _intrinsic_size(tag)
            if style.height is not None:
                height = style.height
            elif intrinsic is not None:
                height = intrinsic[1]
            else:
                height = own_text[id(tag)] + sum(
                    heights[id(child)]
                    for child in tag.find_all(True, recursive=False)
                    if self._styles[id(child)].position not in {"absolute", "fixed"}
                )
                if tag.name == "button" and height > 0:
                    height = max(height, _MIN_BUTTON_HEIGHT)
                elif tag.name == "button":
                    height = _MIN_BUTTON_HEIGHT
            if tag is self.root:
                height = max(height, viewport_height)
            heights[id(tag)] = height

        cursors: dict[int, float] = {}
        for tag in self._tags:
            style = self._styles[id(tag)]
            parent = tag.parent
            parent_box = self._boxes.get(id(parent)) if parent is not None else None
            if parent_box is None:
                parent_box = Rect(0.0, 0.0, viewport_width, viewport_height)
                stacking_base = 0
            else:
                stacking_base = self._stacking[id(parent)]

            if suppressed[id(tag)]:
                box = Rect(parent_box.x, parent_box.y, 0.0, 0.0)
            elif style.position == "fixed":
                box = Rect(style.left or 0.0, style.top or 0.0, widths[id(tag)], heights[id(tag)])
            elif style.position == "absolute":
                box = Rect(
                    parent_box.x + (style.left or 0.0),
                    parent_box.y + (style.top or 0.0),
                    widths[id(tag)],
                    heights[id(tag)],
                )
            else:
                y = cursors.get(id(parent), parent_box.y)
                box = Rect(parent_box.x, y, widths[id(tag)], heights[id(tag)])
                cursors[id(parent)] = y + heights[id(tag)]
            self._boxes[id(tag)] = box
            cursors[id(tag)] = box.y + own_text[id(tag)]

            if style.position != "static" and style.z_index is not None:
                self._stacking[id(tag)] = style.z_index
            else:
                self._stacking[id(tag)] = stacking_base


def iter_ancestors(node: Tag, stop: Tag | None = None) -> Iterator[Tag]:
    """Yield element ancestors nearest first, ending before ``stop``."""
    current = node.parent
    while isinstance(current, Tag) and not isinstance(current, BeautifulSoup):
        if stop is not None and current is stop:
            return
        yield current
        current = current.parent


def is_descendant(node: Tag, ancestor: Tag) -> bool:
    return any(item is ancestor for item in iter_ancestors(node))


def parse_declarations(text: str) -> dict[str, tuple[str, bool]]:
    """Parse ``name: value`` pairs, tracking ``!important``."""
    declarations: dict[str, tuple[str, bool]] = {}
    for part in text.split(";"):
        name, sep, value = part.partition(":")
        if not sep:
            continue
        name = name.strip()
        if not name.startswith("--"):
            name = name.lower()
        value = value.strip()
        important = False
        if value.lower().endswith("!important"):
            important = True
            value = value[: -len("!important")].strip()
        if not name or not value:
            continue
        if name == "background":
            # var() references are picked apart after substitution.
            token = value if "var(" in value else extract_color_token(value)
            if token is None:
                continue
            name, value = "background-color", token
        declarations[name] = (value, important)
    return declarations


def resolve_var_references(value: str, custom: dict[str, str]) -> str | None:
    """Substitute ``var()`` references, using fallbacks for undefined names.

    Returns ``None`` when a reference has neither a definition nor a
    fallback, which makes the declaration invalid at computed-value time.
    """
    for _ in range(_MAX_VAR_DEPTH):
        if "var(" not in value:
            return value
        missing = False

        def replace(match: re.Match[str]) -> str:
            nonlocal missing
            name, fallback = match.group(1), match.group(2)
            if name in custom:
                return custom[name]
            if fallback is not None:
                return fallback.strip()
            missing = True
            return ""

        value = _VAR_RE.sub(replace, value)
        if missing:
            return None
    return None if "var(" in value else value


def _custom_properties(declared: dict[str, str], inherited: dict[str, str]) -> dict[str, str]:
    own = {name: value for name, value in declared.items() if name.startswith("--")}
    if not own:
        return inherited
    custom = {**inherited, **own}
    for name in own:
        resolved = resolve_var_references(own[name], custom)
        if resolved is None:
            custom.pop(name)
        else:
            custom[name] = resolved
    return custom


def _substitute_declarations(declared: dict[str, str], custom: dict[str, str]) -> dict[str, str]:
    substituted: dict[str, str] = {}
    for name, value in declared.items():
        if name.startswith("--"):
            continue
        resolved = resolve_var_references(value, custom)
        if resolved is not None:
            substituted[name] = resolved
    return substituted


def _iter_css_rules(text: str) -> Iterator[tuple[str, str]]:
    """Yield top-level ``(selector, body)`` pairs, skipping at-rules."""
    text = _CSS_COMMENT_RE.sub("", text)
    depth = 0
    prelude_start = 0
    body_start = 0
    prelude = ""
    for index, char in enumerate(text):
        if char == "{":
            if depth == 0:
                prelude = text[prelude_start:index].strip()
                body_start = index + 1
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                if prelude and not prelude.startswith("@"):
                    yield (prelude, text[body_start:index])
                prelude_start = index + 1
        elif char == ";" and depth == 0:
            prelude_start = index + 1


def _specificity(selector: str) -> tuple[int, int, int]:
    ids = len(re.findall(r"#[\w-]+", selector))
    classes = len(re.findall(r"\.[\w-]+|\[[^\]]+\]|(?<!:):(?!not\b)[\w-]+", selector))
    types = len(re.findall(r"(?:^|[\s>+~(])([a-zA-Z][\w-]*)", selector))
    return (ids, classes, types)


def _user_agent_declarations(tag: Tag) -> dict[str, tuple[str, bool]]:
    declarations: dict[str, tuple[str, bool]] = {}
    name = tag.name
    if name in _UA_HIDDEN_TAGS or tag.has_attr("hidden"):
        declarations["display"] = ("none", False)
    if name == "input" and str(tag.get("type", "")).lower() == "hidden":
        declarations["display"] = ("none", False)
    if name in _HEADING_FONT_SIZES:
        declarations["font-size"] = (f"{_HEADING_FONT_SIZES[name]}px", False)
    if name in _BOLD_TAGS:
        declarations["font-weight"] = ("bold", False)
    return declarations


def resolve_style(declared: dict[str, str], parent: ComputedStyle) -> ComputedStyle:
    """Resolve declared values against the parent's computed style."""
    def value_of(name: str) -> str | None:
        raw = declared.get(name)
        if raw is None:
            return None
        raw = raw.strip()
        return None if raw.lower() == "inherit" else raw

    font_size = _parse_font_size(value_of("font-size"), parent.font_size)
    color_raw = value_of("color")
    color = parent.color
    if color_raw is not None and color_raw.lower() != "currentcolor":
        color = normalize_css_color(color_raw)

    background_raw = declared.get("background-color")
    if background_raw is None:
        background = TRANSPARENT
    elif background_raw.strip().lower() == "inherit":
        background = parent.background_color
    else:
        background = normalize_css_color(extract_color_token(background_raw) or background_raw)

    visibility = (value_of("visibility") or parent.visibility).lower()
    if visibility == "collapse":
        visibility = "hidden"

    return ComputedStyle(
        display=(value_of("display") or "block").lower(),
        visibility=visibility,
        opacity=_parse_opacity(value_of("opacity")),
        color=color,
        background_color=background,
        font_size=font_size,
        font_weight=_parse_font_weight(value_of("font-weight"), parent.font_weight),
        line_height=_parse_line_height(value_of("line-height"), font_size, parent.line_height),
        cursor=(value_of("cursor") or parent.cursor).lower(),
        position=(value_of("position") or "static").lower(),
        z_index=_parse_z_index(value_of("z-index")),
        pointer_events=(value_of("pointer-events") or parent.pointer_events).lower(),
        width=_parse_length(value_of("width"), font_size),
        height=_parse_length(value_of("height"), font_size),
        left=_parse_length(value_of("left"), font_size),
        top=_parse_length(value_of("top"), font_size),
    )


def _parse_length(raw: str | None, font_size: float) -> float | None:
    if raw is None:
        return None
    match = _LENGTH_RE.fullmatch(raw.strip())
    if match is None:
        return None
    number = _parse_number(match.group(1))
    if number is None:
        return None
    unit = (match.group(2) or "px").lower()
    if unit == "px":
        return number
    if unit == "pt":
        return number * 4 / 3
    if unit == "em":
        return number * font_size
    if unit == "rem":
        return number * _ROOT_FONT_SIZE
    return None


def _parse_font_size(raw: str | None, parent_size: float) -> float:
    if raw is None:
        return parent_size
    lowered = raw.lower()
    if lowered in _FONT_SIZE_KEYWORDS:
        return _FONT_SIZE_KEYWORDS[lowered]
    if lowered == "smaller":
        return parent_size / 1.2
    if lowered == "larger":
        return parent_size * 1.2
    match = _LENGTH_RE.fullmatch(lowered)
    if match is None:
        return parent_size
    if match.group(2) == "%":
        number = _parse_number(match.group(1))
        return number * parent_size / 100 if number is not None else parent_size
    parsed = _parse_length(lowered, parent_size)
    return parsed if parsed is not None else parent_size


def _parse_font_weight(raw: str | None, parent_weight: int) -> int:
    if raw is None:
        return parent_weight
    lowered = raw.lower()
    if lowered == "normal":
        return 400
    if lowered == "bold":
        return 700
    if lowered == "bolder":
        return 700 if parent_weight < 600 else 900
    if lowered == "lighter":
        return 400 if parent_weight >= 600 else 100
    number = _parse_number(lowered)
    return int(number) if number is not None else parent_weight


def _parse_line_height(raw: str | None, font_size: float, parent_factor: float) -> float:
    if raw is None:
        return parent_factor
    lowered = raw.lower()
    if lowered == "normal":
        return 1.2
    number = _parse_number(lowered)
    if number is not None:
        return number
    length = _parse_length(lowered, font_size)
    if length is None or font_size <= 0:
        return parent_factor
    return length / font_size


def _parse_opacity(raw: str | None) -> float:
    if raw is None:
        return 1.0
    text = raw.strip()
    percent = text.endswith("%")
    number = _parse_number(text.removesuffix("%"))
    if number is None:
        return 1.0
    return max(0.0, min(1.0, number / 100 if percent else number))


def _parse_number(text: str) -> float | None:
    if _NUMBER_RE.fullmatch(text.strip()) is None:
        return None
    number = float(text)
    return number if math.isfinite(number) else None


def _parse_z_index(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _intrinsic_size(tag: Tag) -> tuple[float, float] | None:
    if tag.name == "input":
        input_type = str(tag.get("type", "text")).lower()
        base = _INPUT_SIZES.get(input_type, _DEFAULT_INPUT_SIZE)
    else:
        base = _REPLACED_SIZES.get(tag.name)
    if base is None:
        return None
    if tag.name not in _SIZE_ATTRIBUTE_TAGS:
        return base
    width = _attribute_length(tag.get("width"))
    height = _attribute_length(tag.get("height"))
    return (
        width if width is not None else base[0],
        height if height is not None else base[1],
    )


def _attribute_length(raw: object) -> float | None:
    if not isinstance(raw, str):
        return None
    return _parse_number(raw.strip().removesuffix("px"))


def _own_text_height(tag: Tag, style: ComputedStyle) -> float:
    if tag.name in _NON_TEXT_CONTAINERS:
        return 0.0
    for child in tag.children:
        if isinstance(child, NavigableString) and not isinstance(child, Comment):
            if child.strip():
                return style.font_size * style.line_height
    return 0.0


def _string_parents(string: NavigableString, stop: Tag) -> Iterator[Tag]:
    current = string.parent
    while isinstance(current, Tag):
        yield current
        if current is stop:
            return
        current = current.parent
