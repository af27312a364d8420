"""
Render configuration.

resolve_config() is the one place where defaults are filled in and inputs
are checked. It returns an immutable RenderConfig; nothing downstream
reads ambient defaults.
"""

import math
import re
from dataclasses import dataclass

from .compute import BoundingBox
from .errors import ConfigurationError
from .image import timestamp_filename
from .palette import PaletteDefinition


DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 800
DEFAULT_MAX_ITER = 1000
DEFAULT_PALETTE = 'inferno'

# Default view (shows classic Mandelbrot overview)
DEFAULT_UPPER_LEFT = complex(-2.5, 1.75)
DEFAULT_COMPLEX_HEIGHT = 3.5

# a+bi / a+bj / a-bi, with optional whitespace, or "(a,b)"
_COMPLEX_PAIR = re.compile(r'^\(\s*([^,]+?)\s*,\s*([^,]+?)\s*\)$')


@dataclass(frozen=True)
class RenderConfig:
    width: int
    height: int
    upper_left: complex
    complex_height: float
    aspect_ratio: float
    max_iter: int
    palette: PaletteDefinition
    reverse: bool = False
    smooth: bool = False
    out_file: str = ''

    def bounding_box(self):
        return BoundingBox.from_height(self.upper_left, self.complex_height, self.aspect_ratio)


def parse_complex(text):
    """
    Parse a complex number given on the command line.

    Accepts Python syntax ("-2+0.5j"), the mathematician's "i" ("-2+0.5i")
    and a "(re,im)" pair.

    Raises:
        ConfigurationError if the text is not a complex number
    """
    s = text.strip()
    m = _COMPLEX_PAIR.match(s)
    try:
        if m:
            return complex(float(m.group(1)), float(m.group(2)))
        return complex(s.replace(' ', '').replace('i', 'j'))
    except ValueError:
        raise ConfigurationError(f"not a complex number: '{text}'") from None


def _positive_int(name, value):
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
    return value


def _positive_float(name, value):
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive finite number, got {value}")
    return value


def resolve_config(width, height, upper_left, complex_height, palette,
                   aspect_ratio=None, max_iter=None, reverse=False,
                   smooth=False, out_file=None):
    """
    Validate inputs and fill in defaults.

    Args:
        width, height: Image dimensions in pixels (default 800x800)
        upper_left: Complex coordinate of the top-left corner, complex or
            str (default -2.5+1.75i)
        complex_height: Height of the region in the complex plane (default 3.5)
        palette: PaletteDefinition
        aspect_ratio: Width / height of the region (default width / height)
        max_iter: Iteration bound (default DEFAULT_MAX_ITER)
        reverse: Walk the palette from end to start
        smooth: Fractional escape times
        out_file: Output path (default ./<unix timestamp>.png)

    Returns:
        RenderConfig

    Raises:
        ConfigurationError on any invalid value
    """
    width = _positive_int('width', DEFAULT_WIDTH if width is None else width)
    height = _positive_int('height', DEFAULT_HEIGHT if height is None else height)

    if upper_left is None:
        upper_left = DEFAULT_UPPER_LEFT
    elif isinstance(upper_left, str):
        upper_left = parse_complex(upper_left)
    upper_left = complex(upper_left)
    if not (math.isfinite(upper_left.real) and math.isfinite(upper_left.imag)):
        raise ConfigurationError(f"upper-left corner must be finite, got {upper_left}")

    if complex_height is None:
        complex_height = DEFAULT_COMPLEX_HEIGHT
    complex_height = _positive_float('complex height', complex_height)

    if aspect_ratio is None:
        aspect_ratio = width / height
    aspect_ratio = _positive_float('aspect ratio', aspect_ratio)

    if max_iter is None:
        max_iter = DEFAULT_MAX_ITER
    max_iter = _positive_int('max_iter', max_iter)

    if not isinstance(palette, PaletteDefinition):
        raise ConfigurationError("palette must be a PaletteDefinition")

    if out_file is None:
        out_file = timestamp_filename()

    return RenderConfig(
        width=width,
        height=height,
        upper_left=upper_left,
        complex_height=complex_height,
        aspect_ratio=aspect_ratio,
        max_iter=max_iter,
        palette=palette,
        reverse=bool(reverse),
        smooth=bool(smooth),
        out_file=str(out_file),
    )
