"""
Color space conversions from CIELCh(uv) down to 8-bit sRGB.

The chain used for every pixel is:

    CIELCh(uv) -> CIELUV -> CIEXYZ -> linear sRGB -> companded sRGB -> uint8

Each step is a small scalar function compiled with Numba so the render
kernel in compute.py can call it per pixel without leaving nopython mode.
The same functions are callable from plain Python, which is what the
tests and the per-pixel debugging path in renderer.py use.

Colors outside the sRGB gamut are clamped channel by channel in the last
step. There is no hue-preserving gamut mapping; high chroma palette
regions are expected to distort and existing renders depend on it.

References:
    - CIE 15:2004 "Colorimetry"
    - IEC 61966-2-1:1999 (sRGB)
"""

import math
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from numba import jit


# D65 reference white, 2 degree observer, normalized to Y = 1
REF_WHITE_D65 = (0.95047, 1.00000, 1.08883)

# u', v' chromaticity of the reference white
_WHITE_DENOM = REF_WHITE_D65[0] + 15.0 * REF_WHITE_D65[1] + 3.0 * REF_WHITE_D65[2]
U_PRIME_D65 = 4.0 * REF_WHITE_D65[0] / _WHITE_DENOM
V_PRIME_D65 = 9.0 * REF_WHITE_D65[1] / _WHITE_DENOM

# CIE lightness breakpoint and the slope of the linear segment below it
LUV_L_BREAK = 8.0
LUV_KAPPA_INV = (3.0 / 29.0) ** 3

# XYZ (D65) to linear sRGB
M_XYZ_TO_SRGB = np.array([
    [ 3.2404542, -1.5371385, -0.4985314],
    [-0.9692660,  1.8760108,  0.0415560],
    [ 0.0556434, -0.2040259,  1.0572252],
], dtype=np.float64)

SRGB_LINEAR_BREAK = 0.0031308


class DisplayColor(NamedTuple):
    """Gamma-encoded 8-bit sRGB triple."""
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class PolarLuv:
    """
    A CIELCh(uv) color (cylindrical CIELUV, a.k.a. HCL).

    Attributes:
        hue: Angle in degrees
        chroma: Colorfulness, nominally >= 0
        lightness: Nominally in [0, 100]
    """
    hue: float
    chroma: float
    lightness: float

    def to_luv(self):
        return lch_to_luv(self.lightness, self.chroma, self.hue)

    def to_display(self):
        """Convert to an 8-bit sRGB DisplayColor."""
        return DisplayColor(*lch_to_display(self.lightness, self.chroma, self.hue))


@jit(nopython=True, cache=True)
def lch_to_luv(L, C, h):
    """Polar to rectangular: (L, C, h°) -> (L, u, v)."""
    rad = math.radians(h)
    return L, C * math.cos(rad), C * math.sin(rad)


@jit(nopython=True, cache=True)
def luv_to_xyz(L, u, v):
    """
    Invert the CIELUV transform relative to the D65 white.

    L == 0 is black by definition (u and v are meaningless there and the
    u'/v' recovery would divide by zero).
    """
    if L == 0.0:
        return 0.0, 0.0, 0.0

    if L > LUV_L_BREAK:
        Y = ((L + 16.0) / 116.0) ** 3
    else:
        Y = LUV_KAPPA_INV * L

    u_prime = u / (13.0 * L) + U_PRIME_D65
    v_prime = v / (13.0 * L) + V_PRIME_D65
    if v_prime == 0.0:
        # Degenerate chromaticity, keep the luminance only
        return 0.0, Y, 0.0

    X = Y * (9.0 * u_prime) / (4.0 * v_prime)
    Z = Y * (12.0 - 3.0 * u_prime - 20.0 * v_prime) / (4.0 * v_prime)
    return X, Y, Z


@jit(nopython=True, cache=True)
def xyz_to_linear_rgb(X, Y, Z):
    """Apply the sRGB primaries matrix. Output is unclamped."""
    m = M_XYZ_TO_SRGB
    R = m[0, 0] * X + m[0, 1] * Y + m[0, 2] * Z
    G = m[1, 0] * X + m[1, 1] * Y + m[1, 2] * Z
    B = m[2, 0] * X + m[2, 1] * Y + m[2, 2] * Z
    return R, G, B


@jit(nopython=True, cache=True)
def srgb_companding(x):
    """sRGB transfer function (linear -> gamma-encoded), one channel."""
    if x > SRGB_LINEAR_BREAK:
        return 1.055 * x ** (1.0 / 2.4) - 0.055
    return 12.92 * x


@jit(nopython=True, cache=True)
def to_display_channel(x):
    """Clamp an encoded channel to [0, 1] and quantize it to 0..255."""
    if not x > 0.0:  # NaN lands here too
        return 0
    if x >= 1.0:
        return 255
    return int(x * 255.0 + 0.5)


@jit(nopython=True, cache=True)
def lch_to_display(L, C, h):
    """
    Full conversion of one CIELCh(uv) color to 8-bit sRGB.

    Args:
        L: Lightness
        C: Chroma
        h: Hue angle in degrees

    Returns:
        (r, g, b) integers in 0..255
    """
    L, u, v = lch_to_luv(L, C, h)
    X, Y, Z = luv_to_xyz(L, u, v)
    R, G, B = xyz_to_linear_rgb(X, Y, Z)
    return (
        to_display_channel(srgb_companding(R)),
        to_display_channel(srgb_companding(G)),
        to_display_channel(srgb_companding(B)),
    )
