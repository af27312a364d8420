"""
Render pipeline: pixel coordinates in, 8-bit sRGB image out.

The MandelbrotRenderer class handles:
- Running the parallel Numba kernels over the whole image
- Keeping the escape-time field so a different palette can be applied
  without iterating again
- A scalar, pure-Python-driven path for single pixels (same math, used for
  debugging and to cross-check the compiled kernels)
"""

import numba
import numpy as np

from .colorspace import DisplayColor, lch_to_display
from .compute import (
    apply_palette,
    compute_escape_times,
    escape_progress,
    escape_time,
    map_pixel,
    render_rows,
    warmup_jit,
)
from .palette import palette_color


def set_num_workers(n):
    """
    Limit the number of threads the parallel kernels use.

    The output does not depend on this value, only the speed does.
    """
    n = max(1, min(int(n), numba.config.NUMBA_NUM_THREADS))
    numba.set_num_threads(n)
    return n


class MandelbrotRenderer:
    """
    Renders a RenderConfig to an RGB array.

    Usage:
        renderer = MandelbrotRenderer(config)
        rgb = renderer.render()
        save_png(rgb, config.out_file)

    Attributes:
        config: The RenderConfig being rendered
        rgb: (height, width, 3) uint8 output buffer
        data, escaped: Escape-time field and mask, once computed
    """

    def __init__(self, config):
        self.config = config
        self.box = config.bounding_box()
        self.params = config.palette.as_array()
        self.reverse = config.reverse
        self.rgb = np.zeros((config.height, config.width, 3), dtype=np.uint8)
        self.data = None
        self.escaped = None

    def _box_args(self):
        b = self.box
        return b.upper_left.real, b.upper_left.imag, b.width, b.height

    def warmup(self):
        """Compile the kernels up front on a tiny image."""
        warmup_jit(self.params)

    def render(self):
        """
        Render the full image with the fused kernel.

        Returns:
            The output buffer (height, width, 3) uint8
        """
        cfg = self.config
        render_rows(*self._box_args(), cfg.max_iter, cfg.smooth,
                    self.params, self.reverse, self.rgb)
        return self.rgb

    def compute_escape_times(self):
        """
        Compute and keep the escape-time field.

        Returns:
            (data, escaped) arrays of shape (height, width)
        """
        cfg = self.config
        self.data, self.escaped = compute_escape_times(
            *self._box_args(), cfg.width, cfg.height, cfg.max_iter, cfg.smooth
        )
        return self.data, self.escaped

    def recolor(self, palette=None, reverse=None):
        """
        Color the kept escape-time field, computing it first if needed.

        Args:
            palette: New PaletteDefinition (or None to keep current)
            reverse: New reverse flag (or None to keep current)

        Returns:
            The output buffer
        """
        if palette is not None:
            self.params = palette.as_array()
        if reverse is not None:
            self.reverse = bool(reverse)
        if self.data is None:
            self.compute_escape_times()
        apply_palette(self.data, self.escaped, self.config.max_iter,
                      self.params, self.reverse, self.rgb)
        return self.rgb

    def render_pixel(self, px, py):
        """
        Run the whole pipeline for one pixel.

        Returns:
            DisplayColor, identical to rgb[py, px] after render()
        """
        cfg = self.config
        c = map_pixel(px, py, cfg.width, cfg.height, self.box)
        escaped, n = escape_time(c.real, c.imag, cfg.max_iter, cfg.smooth)
        progress = escape_progress(escaped, n, cfg.max_iter)
        L, C, h = palette_color(progress, self.params, self.reverse)
        return DisplayColor(*lch_to_display(L, C, h))
