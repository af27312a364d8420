import pytest

from hclbrot.palette import PaletteDefinition


@pytest.fixture
def grayscale_palette():
    """Pure lightness ramp from black to white."""
    return PaletteDefinition.from_dict({
        'name': 'gray ramp',
        'start': {'h': 0, 'C': 0, 'L': 0},
        'end': {'h': 0, 'C': 0, 'L': 100},
        'powerC': 1,
        'powerL': 1,
    })


@pytest.fixture
def curved_palette():
    return PaletteDefinition.from_dict({
        'name': 'curved',
        'start': {'h': 300, 'C': 40, 'L': 15},
        'end': {'h': 75, 'C': 95, 'L': 90},
        'powerC': 1.3,
        'powerL': 0.7,
    })


@pytest.fixture
def triangular_palette():
    return PaletteDefinition.from_dict({
        'name': 'triangle',
        'start': {'h': 260, 'C': 10, 'L': 20},
        'end': {'h': 60, 'C': 10, 'L': 95},
        'powerC': 1,
        'powerL': 1,
        'Cmax': 80,
    })
