"""Color parsing and WCAG contrast math."""

from __future__ import annotations

import colorsys
import math
import re
from dataclasses import dataclass

# CSS Color Module Level 4 named colors.
NAMED_COLORS: dict[str, tuple[int, int, int]] = {
    "aliceblue": (240, 248, 255),
    "antiquewhite": (250, 235, 215),
    "aqua": (0, 255, 255),
    "aquamarine": (127, 255, 212),
    "azure": (240, 255, 255),
    "beige": (245, 245, 220),
    "bisque": (255, 228, 196),
    "black": (0, 0, 0),
    "blanchedalmond": (255, 235, 205),
    "blue": (0, 0, 255),
    "blueviolet": (138, 43, 226),
    "brown": (165, 42, 42),
    "burlywood": (222, 184, 135),
    "cadetblue": (95, 158, 160),
    "chartreuse": (127, 255, 0),
    "chocolate": (210, 105, 30),
    "coral": (255, 127, 80),
    "cornflowerblue": (100, 149, 237),
    "cornsilk": (255, 248, 220),
    "crimson": (220, 20, 60),
    "cyan": (0, 255, 255),
    "darkblue": (0, 0, 139),
    "darkcyan": (0, 139, 139),
    "darkgoldenrod": (184, 134, 11),
    "darkgray": (169, 169, 169),
    "darkgreen": (0, 100, 0),
    "darkgrey": (169, 169, 169),
    "darkkhaki": (189, 183, 107),
    "darkmagenta": (139, 0, 139),
    "darkolivegreen": (85, 107, 47),
    "darkorange": (255, 140, 0),
    "darkorchid": (153, 50, 204),
    "darkred": (139, 0, 0),
    "darksalmon": (233, 150, 122),
    "darkseagreen": (143, 188, 143),
    "darkslateblue": (72, 61, 139),
    "darkslategray": (47, 79, 79),
    "darkslategrey": (47, 79, 79),
    "darkturquoise": (0, 206, 209),
    "darkviolet": (148, 0, 211),
    "deeppink": (255, 20, 147),
    "deepskyblue": (0, 191, 255),
    "dimgray": (105, 105, 105),
    "dimgrey": (105, 105, 105),
    "dodgerblue": (30, 144, 255),
    "firebrick": (178, 34, 34),
    "floralwhite": (255, 250, 240),
    "forestgreen": (34, 139, 34),
    "fuchsia": (255, 0, 255),
    "gainsboro": (220, 220, 220),
    "ghostwhite": (248, 248, 255),
    "gold": (255, 215, 0),
    "goldenrod": (218, 165, 32),
    "gray": (128, 128, 128),
    "green": (0, 128, 0),
    "greenyellow": (173, 255, 47),
    "grey": (128, 128, 128),
    "honeydew": (240, 255, 240),
    "hotpink": (255, 105, 180),
    "indianred": (205, 92, 92),
    "indigo": (75, 0, 130),
    "ivory": (255, 255, 240),
    "khaki": (240, 230, 140),
    "lavender": (230, 230, 250),
    "lavenderblush": (255, 240, 245),
    "lawngreen": (124, 252, 0),
    "lemonchiffon": (255, 250, 205),
    "lightblue": (173, 216, 230),
    "lightcoral": (240, 128, 128),
    "lightcyan": (224, 255, 255),
    "lightgoldenrodyellow": (250, 250, 210),
    "lightgray": (211, 211, 211),
    "lightgreen": (144, 238, 144),
    "lightgrey": (211, 211, 211),
    "lightpink": (255, 182, 193),
    "lightsalmon": (255, 160, 122),
    "lightseagreen": (32, 178, 170),
    "lightskyblue": (135, 206, 250),
    "lightslategray": (119, 136, 153),
    "lightslategrey": (119, 136, 153),
    "lightsteelblue": (176, 196, 222),
    "lightyellow": (255, 255, 224),
    "lime": (0, 255, 0),
    "limegreen": (50, 205, 50),
    "linen": (250, 240, 230),
    "magenta": (255, 0, 255),
    "maroon": (128, 0, 0),
    "mediumaquamarine": (102, 205, 170),
    "mediumblue": (0, 0, 205),
    "mediumorchid": (186, 85, 211),
    "mediumpurple": (147, 112, 219),
    "mediumseagreen": (60, 179, 113),
    "mediumslateblue": (123, 104, 238),
    "mediumspringgreen": (0, 250, 154),
    "mediumturquoise": (72, 209, 204),
    "mediumvioletred": (199, 21, 133),
    "midnightblue": (25, 25, 112),
    "mintcream": (245, 255, 250),
    "mistyrose": (255, 228, 225),
    "moccasin": (255, 228, 181),
    "navajowhite": (255, 222, 173),
    "navy": (0, 0, 128),
    "oldlace": (253, 245, 230),
    "olive": (128, 128, 0),
    "olivedrab": (107, 142, 35),
    "orange": (255, 165, 0),
    "orangered": (255, 69, 0),
    "orchid": (218, 112, 214),
    "palegoldenrod": (238, 232, 170),
    "palegreen": (152, 251, 152),
    "paleturquoise": (175, 238, 238),
    "palevioletred": (219, 112, 147),
    "papayawhip": (255, 239, 213),
    "peachpuff": (255, 218, 185),
    "peru": (205, 133, 63),
    "pink": (255, 192, 203),
    "plum": (221, 160, 221),
    "powderblue": (176, 224, 230),
    "purple": (128, 0, 128),
    "rebeccapurple": (102, 51, 153),
    "red": (255, 0, 0),
    "rosybrown": (188, 143, 143),
    "royalblue": (65, 105, 225),
    "saddlebrown": (139, 69, 19),
    "salmon": (250, 128, 114),
    "sandybrown": (244, 164, 96),
    "seagreen": (46, 139, 87),
    "seashell": (255, 245, 238),
    "sienna": (160, 82, 45),
    "silver": (192, 192, 192),
    "skyblue": (135, 206, 235),
    "slateblue": (106, 90, 205),
    "slategray": (112, 128, 144),
    "slategrey": (112, 128, 144),
    "snow": (255, 250, 250),
    "springgreen": (0, 255, 127),
    "steelblue": (70, 130, 180),
    "tan": (210, 180, 140),
    "teal": (0, 128, 128),
    "thistle": (216, 191, 216),
    "tomato": (255, 99, 71),
    "turquoise": (64, 224, 208),
    "violet": (238, 130, 238),
    "wheat": (245, 222, 179),
    "white": (255, 255, 255),
    "whitesmoke": (245, 245, 245),
    "yellow": (255, 255, 0),
    "yellowgreen": (154, 205, 50),
}

TRANSPARENT = "rgba(0, 0, 0, 0)"
WHITE = "rgb(255, 255, 255)"

LARGE_TEXT_RATIO = 3.0
NORMAL_TEXT_RATIO = 4.5

_RGB_RE = re.compile(
    r"rgba?\(\s*(-?[\d.]+)\s*[,\s]\s*(-?[\d.]+)\s*[,\s]\s*(-?[\d.]+)"
    r"\s*(?:[,/]\s*([\d.]+%?)\s*)?\)",
    re.IGNORECASE,
)
_HSL_RE = re.compile(
    r"hsla?\(\s*(-?[\d.]+)(deg|grad|rad|turn)?\s*[,\s]\s*([\d.]+)%\s*[,\s]\s*([\d.]+)%"
    r"\s*(?:[,/]\s*([\d.]+%?)\s*)?\)",
    re.IGNORECASE,
)
_HUE_UNITS = {"deg": 1.0, "grad": 0.9, "rad": 180 / math.pi, "turn": 360.0}
_HEX_RE = re.compile(r"#([0-9a-f]{3,8})\b", re.IGNORECASE)
_COLOR_TOKEN_RE = re.compile(
    r"(?:rgb|hsl)a?\([^)]*\)|#[0-9a-f]{3,8}\b|\b[a-z]+\b", re.IGNORECASE
)


@dataclass(frozen=True, slots=True)
class ColorSample:
    """An sRGB color with 0-255 channels. Alpha is tracked by callers."""

    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise ValueError(f"Color channel out of range: {channel}")

    def css(self) -> str:
        return f"rgb({self.r}, {self.g}, {self.b})"


@dataclass(frozen=True, slots=True)
class ContrastRequirement:
    """Minimum contrast ratio for a run of text."""

    ratio: float
    large_text: bool


def parse_color(value: str | None) -> tuple[ColorSample, float] | None:
    """Parse a computed color string into a sample and its alpha.

    Returns ``None`` for anything that is not an ``rgb()``/``rgba()`` value
    or the ``transparent`` keyword.
    """
    if not value:
        return None
    text = value.strip().lower()
    if text == "transparent":
        return (ColorSample(0, 0, 0), 0.0)
    match = _RGB_RE.fullmatch(text)
    if match is None:
        return None
    try:
        channels = [_clamp_channel(float(part)) for part in match.group(1, 2, 3)]
        alpha = _parse_alpha(match.group(4))
    except ValueError:
        return None
    return (ColorSample(*channels), alpha)


def normalize_css_color(value: str) -> str:
    """Normalize an authored color to the string form a browser reports.

    Hex, named and ``hsl()`` colors become ``rgb(...)``/``rgba(...)``;
    ``rgb()`` values are re-spaced. Anything unrecognized is returned
    unchanged.
    """
    text = value.strip()
    lowered = text.lower()
    if lowered == "transparent":
        return TRANSPARENT
    if lowered in NAMED_COLORS:
        return ColorSample(*NAMED_COLORS[lowered]).css()
    hex_match = _HEX_RE.fullmatch(lowered)
    if hex_match is not None:
        return _normalize_hex(hex_match.group(1)) or text
    parsed = parse_color(lowered) or parse_hsl(lowered)
    if parsed is None:
        return text
    return _css_with_alpha(*parsed)


def parse_hsl(value: str) -> tuple[ColorSample, float] | None:
    """Convert an ``hsl()``/``hsla()`` value to an sRGB sample and alpha."""
    match = _HSL_RE.fullmatch(value.strip().lower())
    if match is None:
        return None
    try:
        hue = float(match.group(1)) * _HUE_UNITS[match.group(2) or "deg"]
        saturation = max(0.0, min(1.0, float(match.group(3)) / 100))
        lightness = max(0.0, min(1.0, float(match.group(4)) / 100))
        alpha = _parse_alpha(match.group(5))
    except ValueError:
        return None
    red, green, blue = colorsys.hls_to_rgb((hue % 360) / 360, lightness, saturation)
    return (ColorSample(*(_clamp_channel(channel * 255) for channel in (red, green, blue))), alpha)


def extract_color_token(value: str) -> str | None:
    """Pick the color out of a ``background`` shorthand value."""
    for match in _COLOR_TOKEN_RE.finditer(value):
        token = match.group(0)
        lowered = token.lower()
        if lowered.startswith(("rgb", "hsl", "#")) or lowered in NAMED_COLORS:
            return token
        if lowered == "transparent":
            return token
    return None


def relative_luminance(color: ColorSample) -> float:
    """Relative luminance per the sRGB transfer function."""
    linear = [_linearize(channel / 255) for channel in (color.r, color.g, color.b)]
    return 0.2126 * linear[0] + 0.7152 * linear[1] + 0.0722 * linear[2]


def contrast_ratio(first: ColorSample, second: ColorSample) -> float:
    l1 = relative_luminance(first)
    l2 = relative_luminance(second)
    lighter = max(l1, l2)
    darker = min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def required_contrast(font_size: float, font_weight: int) -> ContrastRequirement:
    """Large text (18px, or 14px bold) needs 3:1, everything else 4.5:1."""
    large = font_size >= 18 or (font_size >= 14 and font_weight >= 700)
    return ContrastRequirement(
        ratio=LARGE_TEXT_RATIO if large else NORMAL_TEXT_RATIO,
        large_text=large,
    )


def _linearize(channel: float) -> float:
    if channel <= 0.03928:
        return channel / 12.92
    return ((channel + 0.055) / 1.055) ** 2.4


def _clamp_channel(value: float) -> int:
    return max(0, min(255, int(round(value))))


def _parse_alpha(raw: str | None) -> float:
    if raw is None:
        return 1.0
    if raw.endswith("%"):
        return max(0.0, min(1.0, float(raw[:-1]) / 100))
    return max(0.0, min(1.0, float(raw)))


def _format_alpha(alpha: float) -> str:
    return f"{alpha:.3f}".rstrip("0").rstrip(".") or "0"


def _normalize_hex(digits: str) -> str | None:
    if len(digits) in (3, 4):
        digits = "".join(char * 2 for char in digits)
    if len(digits) not in (6, 8):
        return None
    r, g, b = (int(digits[index : index + 2], 16) for index in (0, 2, 4))
    if len(digits) == 8:
        alpha = int(digits[6:8], 16) / 255
        if alpha < 1.0:
            return f"rgba({r}, {g}, {b}, {_format_alpha(alpha)})"
    return ColorSample(r, g, b).css()


def _css_with_alpha(sample: ColorSample, alpha: float) -> str:
    if alpha >= 1.0:
        return sample.css()
    return f"rgba({sample.r}, {sample.g}, {sample.b}, {_format_alpha(alpha)})"
