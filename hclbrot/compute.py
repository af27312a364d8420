"""
Mandelbrot escape-time computation using Numba JIT compilation.

This module contains the performance-critical functions of the render:
- Pixel to complex-plane mapping over a bounding box
- Escape-time iteration of z -> z² + c, with optional smoothing
- Normalization of escape times to palette progress
- Parallel kernels that compute a whole escape-time field, color an
  existing field, or run the fused pixel -> RGB pipeline

Every pixel is independent. The parallel kernels split the image by rows
with prange, so each row is written by exactly one worker and the output
does not depend on the number of threads. fastmath is off
for the same reason: the compiled kernels and the scalar Python path in
renderer.py must agree bit for bit.
"""

import math
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from numba import jit, prange

from .colorspace import lch_to_display
from .errors import ConfigurationError
from .palette import palette_color


BAILOUT_RADIUS = 2.0
ESCAPE_R2 = BAILOUT_RADIUS * BAILOUT_RADIUS
LOG_2 = math.log(2.0)


@dataclass(frozen=True)
class BoundingBox:
    """
    Region of the complex plane covered by the image.

    Attributes:
        upper_left: Complex coordinate of the top-left image corner
        width: Extent along the real axis (> 0)
        height: Extent along the imaginary axis (> 0)
    """
    upper_left: complex
    width: float
    height: float

    @classmethod
    def from_height(cls, upper_left, complex_height, aspect_ratio):
        """Box of the given height whose width follows the aspect ratio."""
        return cls(complex(upper_left), complex_height * aspect_ratio, complex_height)

    def bounds(self):
        """(x_min, x_max, y_min, y_max) of the box."""
        x_min = self.upper_left.real
        y_max = self.upper_left.imag
        return x_min, x_min + self.width, y_max - self.height, y_max


class EscapeTime(NamedTuple):
    """
    Result of iterating one point.

    escaped is False for points that stayed within the bailout radius for
    every iteration (Bounded); their iteration count is max_iter.
    """
    escaped: bool
    iterations: float

    @property
    def bounded(self):
        return not self.escaped


@jit(nopython=True, cache=True)
def pixel_to_point(px, py, width, height, re0, im0, box_w, box_h):
    """
    Map a pixel to the complex plane.

    Image rows grow downward while the imaginary axis grows upward, hence
    the subtraction for the imaginary part.
    """
    return re0 + (px / width) * box_w, im0 - (py / height) * box_h


@jit(nopython=True, cache=True)
def escape_time(cr, ci, max_iter, smooth):
    """
    Iterate z_{n+1} = z_n² + c from z_0 = 0.

    Args:
        cr, ci: Real and imaginary parts of c
        max_iter: Iteration bound
        smooth: Apply the continuous (fractional) iteration correction

    Returns:
        (escaped, n). n is the index of the step whose result left the
        bailout radius, so any |c| > 2 escapes at 0. Bounded points
        return (False, max_iter).
    """
    zr, zi = 0.0, 0.0
    for i in range(max_iter):
        zr, zi = zr * zr - zi * zi + cr, 2.0 * zr * zi + ci
        mag2 = zr * zr + zi * zi
        if mag2 > ESCAPE_R2:
            if not smooth:
                return True, float(i)
            # |z| > 2 here, so log(log|z|) is finite
            n = i + 1.0 - math.log(0.5 * math.log(mag2)) / LOG_2
            if n < 0.0:
                n = 0.0
            elif n > max_iter:
                n = float(max_iter)
            return True, n
    return False, float(max_iter)


@jit(nopython=True, cache=True)
def escape_progress(escaped, n, max_iter):
    """Normalize an escape time to palette progress; bounded points map to 1."""
    if not escaped or max_iter <= 0:
        return 1.0
    p = n / max_iter
    if p < 0.0:
        return 0.0
    if p > 1.0:
        return 1.0
    return p


def map_pixel(px, py, image_width, image_height, box):
    """Complex coordinate of pixel (px, py) inside box."""
    re, im = pixel_to_point(
        float(px), float(py), float(image_width), float(image_height),
        box.upper_left.real, box.upper_left.imag, box.width, box.height
    )
    return complex(re, im)


def evaluate(c, max_iter, smooth=False):
    """
    Escape time of a single point.

    Args:
        c: Complex coordinate
        max_iter: Maximum number of iterations (>= 1)
        smooth: Return a fractional, banding-free iteration count

    Returns:
        EscapeTime
    """
    if max_iter < 1:
        raise ConfigurationError(f"max_iter must be at least 1, got {max_iter}")
    c = complex(c)
    escaped, n = escape_time(c.real, c.imag, int(max_iter), bool(smooth))
    return EscapeTime(bool(escaped), n)


@jit(nopython=True, parallel=True, cache=True)
def compute_escape_times(re0, im0, box_w, box_h, width, height, max_iter, smooth):
    """
    Compute the escape-time field of a whole image.

    Args:
        re0, im0: Upper-left corner of the bounding box
        box_w, box_h: Bounding box extent in the complex plane
        width, height: Output image dimensions in pixels
        max_iter: Maximum iteration count
        smooth: Fractional iteration counts

    Returns:
        (data, escaped): (height, width) float64 escape times, with
        max_iter for bounded points, and the matching bool mask.
    """
    data = np.empty((height, width), dtype=np.float64)
    escaped = np.zeros((height, width), dtype=np.bool_)

    for py in prange(height):
        for px in range(width):
            cr, ci = pixel_to_point(px, py, width, height, re0, im0, box_w, box_h)
            esc, n = escape_time(cr, ci, max_iter, smooth)
            data[py, px] = n
            escaped[py, px] = esc

    return data, escaped


@jit(nopython=True, parallel=True, cache=True)
def apply_palette(data, escaped, max_iter, params, reverse, out):
    """
    Color an escape-time field with an HCL palette.

    Args:
        data: 2D array of escape times from compute_escape_times
        escaped: Matching escape mask
        max_iter: Iteration bound the field was computed with
        params: Palette parameter vector (PaletteDefinition.as_array())
        reverse: Walk the palette from end to start
        out: Output RGB image array (modified in place)
    """
    height, width = data.shape
    for py in prange(height):
        for px in range(width):
            p = escape_progress(escaped[py, px], data[py, px], max_iter)
            L, C, h = palette_color(p, params, reverse)
            r, g, b = lch_to_display(L, C, h)
            out[py, px, 0] = r
            out[py, px, 1] = g
            out[py, px, 2] = b


@jit(nopython=True, parallel=True, cache=True)
def render_rows(re0, im0, box_w, box_h, max_iter, smooth, params, reverse, out):
    """
    Fused pipeline: pixel -> c -> escape time -> progress -> HCL -> sRGB.

    Writes straight into out (height, width, 3) without keeping the
    escape-time field around.
    """
    height, width = out.shape[0], out.shape[1]
    for py in prange(height):
        for px in range(width):
            cr, ci = pixel_to_point(px, py, width, height, re0, im0, box_w, box_h)
            esc, n = escape_time(cr, ci, max_iter, smooth)
            p = escape_progress(esc, n, max_iter)
            L, C, h = palette_color(p, params, reverse)
            r, g, b = lch_to_display(L, C, h)
            out[py, px, 0] = r
            out[py, px, 1] = g
            out[py, px, 2] = b


def warmup_jit(params):
    """
    Warm up JIT compilation with small dummy arrays.

    Call this once at startup to pre-compile the Numba functions,
    avoiding a delay on first actual use.

    Args:
        params: A palette parameter vector to use for warming up
    """
    data, escaped = compute_escape_times(-2.0, 1.0, 3.0, 2.0, 10, 10, 10, False)
    dummy = np.zeros((10, 10, 3), dtype=np.uint8)
    apply_palette(data, escaped, 10, params, False, dummy)
    render_rows(-2.0, 1.0, 3.0, 2.0, 10, False, params, False, dummy)
