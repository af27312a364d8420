"""
Sequential HCL palettes for Mandelbrot coloring.

A palette is two CIELCh(uv) endpoints plus power exponents that shape how
chroma and lightness move between them. Hue always moves linearly along
the shortest arc. An optional chroma ceiling (Cmax) turns the chroma path
into a triangle: it rises from the start chroma to Cmax, then falls to
the end chroma.

Palette files are JSON:

    {
        "name": "Inferno",
        "start": {"h": 290, "C": 0, "L": 2},
        "end": {"h": 85, "C": 40, "L": 98},
        "powerC": 1.0,
        "powerL": 1.1,
        "Cmax": 120
    }

"split" (optional, default 0.5) moves the peak of the triangular chroma
path. C >= 0, 0 <= L <= 100 and Cmax >= max(start.C, end.C) are the
intended ranges but are not checked; out-of-range values flow through to
the color conversion and get clamped there.

Built-in palettes live in the palettes/ directory next to this module.
To add one, drop a JSON file there; its file name (without .json) is the
palette name.
"""

import json
import math
import os
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numba import jit

from .colorspace import PolarLuv, lch_to_display
from .errors import PaletteError


PALETTE_DIR = os.path.join(os.path.dirname(__file__), 'palettes')

DEFAULT_SPLIT = 0.5

# Layout of the parameter vector passed to compiled kernels
P_START_H, P_START_C, P_START_L = 0, 1, 2
P_END_H, P_END_C, P_END_L = 3, 4, 5
P_POWER_C, P_POWER_L = 6, 7
P_CMAX = 8  # NaN when the palette has no chroma ceiling
P_SPLIT = 9
NUM_PARAMS = 10


@dataclass(frozen=True)
class PaletteDefinition:
    """
    Validated, read-only palette.

    Attributes:
        name: Informational name
        start, end: CIELCh(uv) endpoints (progress 0 and 1)
        power_c: Exponent shaping the chroma path
        power_l: Exponent shaping the lightness path
        c_max: Optional chroma ceiling for the triangular chroma path
        split: Progress at which the triangular path peaks
    """
    name: str
    start: PolarLuv
    end: PolarLuv
    power_c: float
    power_l: float
    c_max: Optional[float] = None
    split: float = DEFAULT_SPLIT

    @classmethod
    def from_dict(cls, data):
        """
        Build a palette from decoded JSON, validating the schema.

        Raises:
            PaletteError if a required field is missing or malformed, or a
            power exponent is not positive.
        """
        if not isinstance(data, dict):
            raise PaletteError("palette must be a JSON object")

        name = data.get('name', 'unnamed')
        if not isinstance(name, str):
            raise PaletteError("'name' must be a string")

        start = _parse_endpoint(data, 'start')
        end = _parse_endpoint(data, 'end')

        power_c = _require_number(data, 'powerC')
        power_l = _require_number(data, 'powerL')
        for key, value in (('powerC', power_c), ('powerL', power_l)):
            if value <= 0:
                raise PaletteError(f"'{key}' must be positive, got {value}")

        c_max = None
        if data.get('Cmax') is not None:
            c_max = _require_number(data, 'Cmax')

        split = DEFAULT_SPLIT
        if data.get('split') is not None:
            split = _require_number(data, 'split')
            if not 0.0 < split < 1.0:
                raise PaletteError(f"'split' must lie strictly between 0 and 1, got {split}")

        return cls(name, start, end, power_c, power_l, c_max, split)

    def to_dict(self):
        """Inverse of from_dict, using the JSON field names."""
        data = {
            'name': self.name,
            'start': {'h': self.start.hue, 'C': self.start.chroma, 'L': self.start.lightness},
            'end': {'h': self.end.hue, 'C': self.end.chroma, 'L': self.end.lightness},
            'powerC': self.power_c,
            'powerL': self.power_l,
        }
        if self.c_max is not None:
            data['Cmax'] = self.c_max
        if self.split != DEFAULT_SPLIT:
            data['split'] = self.split
        return data

    def as_array(self):
        """Pack into the float64 parameter vector used by palette_color."""
        params = np.empty(NUM_PARAMS, dtype=np.float64)
        params[P_START_H] = self.start.hue
        params[P_START_C] = self.start.chroma
        params[P_START_L] = self.start.lightness
        params[P_END_H] = self.end.hue
        params[P_END_C] = self.end.chroma
        params[P_END_L] = self.end.lightness
        params[P_POWER_C] = self.power_c
        params[P_POWER_L] = self.power_l
        params[P_CMAX] = np.nan if self.c_max is None else self.c_max
        params[P_SPLIT] = self.split
        return params


def _require_number(data, key, where=None):
    label = f"'{where}.{key}'" if where else f"'{key}'"
    if key not in data:
        raise PaletteError(f"missing required field {label}")
    value = data[key]
    # bool is an int subclass, but true/false in a palette file is a mistake
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PaletteError(f"{label} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise PaletteError(f"{label} must be finite, got {value}")
    return value


def _parse_endpoint(data, key):
    if key not in data:
        raise PaletteError(f"missing required field '{key}'")
    point = data[key]
    if not isinstance(point, dict):
        raise PaletteError(f"'{key}' must be an object with h, C and L")
    return PolarLuv(
        hue=_require_number(point, 'h', key),
        chroma=_require_number(point, 'C', key),
        lightness=_require_number(point, 'L', key),
    )


# ============================================================================
# Trajectory
# ============================================================================

@jit(nopython=True, cache=True)
def _shape(t, power):
    """t ** power with the endpoints pinned, whatever the power is."""
    if t <= 0.0:
        return 0.0
    if t >= 1.0:
        return 1.0
    return t ** power


@jit(nopython=True, cache=True)
def _lerp(a, b, t):
    # Exact endpoints: a + (b - a) * 1 is not always b in floating point
    if t == 0.0:
        return a
    if t == 1.0:
        return b
    return a + (b - a) * t


@jit(nopython=True, cache=True)
def _hue_delta(h0, h1):
    """Signed shortest angular distance from h0 to h1, in (-180, 180]."""
    dh = (h1 - h0) % 360.0
    if dh > 180.0:
        dh -= 360.0
    elif dh <= -180.0:
        dh += 360.0
    return dh


@jit(nopython=True, cache=True)
def palette_color(progress, params, reverse):
    """
    Map a progress value to a CIELCh(uv) color.

    Args:
        progress: Position along the palette, clamped to [0, 1]
        params: Parameter vector from PaletteDefinition.as_array()
        reverse: Walk the palette from end to start

    Returns:
        (L, C, h) tuple
    """
    p = progress
    if not p > 0.0:
        p = 0.0
    elif p > 1.0:
        p = 1.0
    if reverse:
        p = 1.0 - p

    h0 = params[P_START_H]
    h1 = params[P_END_H]
    if p == 1.0:
        h = h1
    else:
        h = _lerp(h0, h0 + _hue_delta(h0, h1), p)

    L = _lerp(params[P_START_L], params[P_END_L], _shape(p, params[P_POWER_L]))

    c0 = params[P_START_C]
    c1 = params[P_END_C]
    power_c = params[P_POWER_C]
    c_max = params[P_CMAX]
    if math.isnan(c_max):
        C = _lerp(c0, c1, _shape(p, power_c))
    else:
        split = params[P_SPLIT]
        if p <= split:
            C = _lerp(c0, c_max, _shape(p / split, power_c))
        else:
            C = _lerp(c_max, c1, _shape((p - split) / (1.0 - split), power_c))

    return L, C, h


def color_at(progress, palette, reverse=False):
    """
    Color of a palette at a given progress.

    Args:
        progress: Value in [0, 1] (0 is palette.start, 1 is palette.end)
        palette: PaletteDefinition
        reverse: Swap the roles of start and end

    Returns:
        PolarLuv color
    """
    L, C, h = palette_color(float(progress), palette.as_array(), bool(reverse))
    return PolarLuv(hue=h, chroma=C, lightness=L)


def palette_swatch(palette, steps=256, reverse=False):
    """
    Sample a palette into an (steps, 3) uint8 RGB array.

    Handy for previewing a palette as a strip image.
    """
    if steps < 2:
        raise ValueError("steps must be at least 2")
    params = palette.as_array()
    colors = np.zeros((steps, 3), dtype=np.uint8)
    for i in range(steps):
        t = i / (steps - 1)
        L, C, h = palette_color(t, params, reverse)
        colors[i] = lch_to_display(L, C, h)
    return colors


# ============================================================================
# Loading
# ============================================================================

def load_palette(path):
    """
    Load and validate a palette JSON file.

    Raises:
        OSError if the file cannot be read
        PaletteError if it is not valid JSON or fails validation
    """
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PaletteError(f"{path}: invalid JSON: {e}") from e
    try:
        return PaletteDefinition.from_dict(data)
    except PaletteError as e:
        raise PaletteError(f"{path}: {e}") from e


def list_palette_names():
    """Names of the built-in palettes, sorted."""
    return sorted(
        os.path.splitext(fname)[0]
        for fname in os.listdir(PALETTE_DIR)
        if fname.endswith('.json')
    )


def get_palette(name):
    """
    Get a built-in palette by name.

    Raises:
        KeyError if name not found
    """
    key = name.lower()
    if key not in list_palette_names():
        raise KeyError(name)
    return load_palette(os.path.join(PALETTE_DIR, key + '.json'))


def resolve_palette(name_or_path):
    """
    Resolve a --palette argument: an existing file path wins, otherwise the
    value is looked up among the built-in palettes.
    """
    if os.path.isfile(name_or_path):
        return load_palette(name_or_path)
    try:
        return get_palette(name_or_path)
    except KeyError:
        raise PaletteError(
            f"no palette file or built-in palette named '{name_or_path}' "
            f"(built-ins: {', '.join(list_palette_names())})"
        ) from None
