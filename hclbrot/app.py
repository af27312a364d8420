"""
Command line application for rendering Mandelbrot images.

Handles:
- Argument parsing
- Palette lookup (built-in name or JSON file)
- Configuration resolution, rendering and saving the PNG

Negative coordinates must be attached to their option with '=', e.g.
--upper-left=-2+1.2i, otherwise argparse reads them as options.
"""

import argparse
import sys
import time

import numpy as np

from .config import (
    DEFAULT_COMPLEX_HEIGHT,
    DEFAULT_HEIGHT,
    DEFAULT_MAX_ITER,
    DEFAULT_PALETTE,
    DEFAULT_UPPER_LEFT,
    DEFAULT_WIDTH,
    parse_complex,
    resolve_config,
)
from .errors import ConfigurationError, HclbrotError
from .image import save_png
from .palette import list_palette_names, palette_swatch, resolve_palette
from .renderer import MandelbrotRenderer, set_num_workers


PROG = 'hclbrot'


def _complex_arg(text):
    try:
        return parse_complex(text)
    except ConfigurationError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser():
    ap = argparse.ArgumentParser(
        prog=PROG,
        description="Render the Mandelbrot set with a sequential HCL palette.",
    )
    ap.add_argument('-W', '--width', type=int, default=DEFAULT_WIDTH,
                    help=f"Image width in pixels (default {DEFAULT_WIDTH})")
    ap.add_argument('-H', '--height', type=int, default=DEFAULT_HEIGHT,
                    help=f"Image height in pixels (default {DEFAULT_HEIGHT})")
    ap.add_argument('--upper-left', type=_complex_arg, default=DEFAULT_UPPER_LEFT,
                    help="Upper-left corner in the complex plane, e.g. --upper-left=-2.5+1.75i")
    ap.add_argument('--cheight', type=float, default=DEFAULT_COMPLEX_HEIGHT,
                    help=f"Height of the region in the complex plane (default {DEFAULT_COMPLEX_HEIGHT})")
    ap.add_argument('-p', '--palette', default=DEFAULT_PALETTE,
                    help=f"Built-in palette name or palette JSON file (default {DEFAULT_PALETTE})")
    ap.add_argument('-r', '--reverse', action='store_true',
                    help="Walk the palette from end to start")
    ap.add_argument('-a', '--aspect-ratio', type=float, default=None,
                    help="Width / height of the region (default: image aspect ratio)")
    ap.add_argument('-N', '--max-iter', type=int, default=None,
                    help=f"Maximum iterations (default {DEFAULT_MAX_ITER})")
    ap.add_argument('-o', '--out-file', default=None,
                    help="Output PNG (default ./<unix timestamp>.png)")
    ap.add_argument('--smooth', action='store_true',
                    help="Fractional escape times for banding-free gradients")
    ap.add_argument('-j', '--workers', type=int, default=None,
                    help="Number of render threads (default: all cores)")
    ap.add_argument('--swatch', action='store_true',
                    help="Save a strip of the palette instead of the fractal")
    ap.add_argument('--list-palettes', action='store_true',
                    help="List built-in palettes and exit")
    return ap


def render_swatch(config):
    """Palette preview: one palette sample per column, repeated on every row."""
    strip = palette_swatch(config.palette, max(config.width, 2), config.reverse)[:config.width]
    return np.ascontiguousarray(np.broadcast_to(strip, (config.height, config.width, 3)))


def run(args):
    """
    Render according to parsed arguments.

    Returns:
        Path of the written image
    """
    palette = resolve_palette(args.palette)
    config = resolve_config(
        width=args.width,
        height=args.height,
        upper_left=args.upper_left,
        complex_height=args.cheight,
        palette=palette,
        aspect_ratio=args.aspect_ratio,
        max_iter=args.max_iter,
        reverse=args.reverse,
        smooth=args.smooth,
        out_file=args.out_file,
    )
    if args.workers is not None and args.workers < 1:
        raise ConfigurationError(f"workers must be at least 1, got {args.workers}")

    if args.swatch:
        save_png(render_swatch(config), config.out_file)
        print(f"Palette swatch saved to: {config.out_file}")
        return config.out_file

    if args.workers is not None:
        set_num_workers(args.workers)

    renderer = MandelbrotRenderer(config)
    t0 = time.perf_counter()
    rgb = renderer.render()
    elapsed = time.perf_counter() - t0

    x_min, x_max, y_min, y_max = renderer.box.bounds()
    print(f"Rendered {config.width}x{config.height} "
          f"[{x_min:g}, {x_max:g}] x [{y_min:g}, {y_max:g}] "
          f"palette '{palette.name}', {config.max_iter} iterations, {elapsed:.2f}s")

    save_png(rgb, config.out_file)
    print(f"Image saved to: {config.out_file}")
    return config.out_file


def main(argv=None):
    """Entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)

    if args.list_palettes:
        for name in list_palette_names():
            print(name)
        return 0

    try:
        run(args)
    except (HclbrotError, OSError) as e:
        print(f"{PROG}: error: {e}", file=sys.stderr)
        return 1
    return 0
