"""
Image sink: PNG writing and output naming.

Images are (height, width, 3) uint8 arrays with row 0 at the top. pygame
surfaces are indexed (x, y), hence the swapaxes before saving.
"""

import os
import time

import numpy as np

os.environ.setdefault('PYGAME_HIDE_SUPPORT_PROMPT', '1')
import pygame  # noqa: E402


def timestamp_filename(directory='.'):
    """Default output path: <directory>/<unix timestamp>.png"""
    return os.path.join(directory, f"{int(time.time())}.png")


def save_png(rgb, path):
    """
    Save an RGB array as a PNG file.

    Args:
        rgb: (height, width, 3) uint8 array
        path: Destination file; its directory must exist

    Raises:
        OSError if the file cannot be written
    """
    rgb = np.ascontiguousarray(rgb, dtype=np.uint8)
    if rgb.ndim != 3 or rgb.shape[2] != 3:
        raise ValueError(f"expected a (height, width, 3) array, got shape {rgb.shape}")
    surface = pygame.surfarray.make_surface(rgb.swapaxes(0, 1))
    try:
        pygame.image.save(surface, os.fspath(path))
    except pygame.error as e:
        raise OSError(f"cannot write {path}: {e}") from e


def load_png(path):
    """Read a PNG back into a (height, width, 3) uint8 array."""
    surface = pygame.image.load(os.fspath(path))
    return pygame.surfarray.array3d(surface).swapaxes(0, 1).copy()
