"""
hclbrot: Mandelbrot set renderer with perceptually uniform HCL palettes

Renders the Mandelbrot set to PNG using Numba for JIT-compiled, parallel
computation. Escape times are colored along sequential CIELCh(uv) palettes
and converted to sRGB with exact colorimetric transforms.

Quick Start:
    from hclbrot import get_palette, resolve_config, MandelbrotRenderer, save_png
    config = resolve_config(1200, 800, -2.5 + 1.25j, 2.5, get_palette('inferno'))
    save_png(MandelbrotRenderer(config).render(), 'mandelbrot.png')

Or from command line:
    python -m hclbrot -W 1200 -H 800 --upper-left=-2.5+1.25i --cheight 2.5

Package Structure:
    - colorspace.py: CIELCh(uv) -> CIELUV -> XYZ -> sRGB conversion
    - palette.py: Palette definitions, loading and the HCL trajectory
    - compute.py: JIT-compiled escape-time computation and render kernels
    - config.py: Validated render configuration and defaults
    - renderer.py: Render pipeline orchestration
    - image.py: PNG output
    - app.py: Command line interface
"""

from .colorspace import DisplayColor, PolarLuv, lch_to_display
from .compute import BoundingBox, EscapeTime, evaluate, map_pixel
from .config import RenderConfig, resolve_config
from .errors import ConfigurationError, HclbrotError, PaletteError
from .image import save_png
from .palette import (
    PaletteDefinition,
    color_at,
    get_palette,
    list_palette_names,
    load_palette,
)
from .renderer import MandelbrotRenderer

__version__ = "1.0.0"
__all__ = [
    "BoundingBox",
    "ConfigurationError",
    "DisplayColor",
    "EscapeTime",
    "HclbrotError",
    "MandelbrotRenderer",
    "PaletteDefinition",
    "PaletteError",
    "PolarLuv",
    "RenderConfig",
    "color_at",
    "evaluate",
    "get_palette",
    "lch_to_display",
    "list_palette_names",
    "load_palette",
    "map_pixel",
    "resolve_config",
    "save_png",
]
