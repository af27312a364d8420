"""
Exceptions raised while preparing a render.

All validation happens once, before any pixel is computed. The compiled
per-pixel kernels never raise.
"""


class HclbrotError(Exception):
    """Base class for errors reported by hclbrot."""


class ConfigurationError(HclbrotError, ValueError):
    """Render configuration rejected (bad dimensions, bounds or iteration count)."""


class PaletteError(HclbrotError, ValueError):
    """Palette definition missing required fields or holding invalid values."""
