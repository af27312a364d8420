import json

import numpy as np
import pytest

from hclbrot.colorspace import PolarLuv, lch_to_display
from hclbrot.errors import PaletteError
from hclbrot.palette import (
    PaletteDefinition,
    color_at,
    get_palette,
    list_palette_names,
    load_palette,
    palette_swatch,
    resolve_palette,
)


def _palette_dict(**overrides):
    data = {
        'name': 'test',
        'start': {'h': 300, 'C': 40, 'L': 15},
        'end': {'h': 75, 'C': 95, 'L': 90},
        'powerC': 1.0,
        'powerL': 1.1,
    }
    data.update(overrides)
    return data


class TestEndpoints:

    def test_progress_zero_and_one(self, curved_palette):
        assert color_at(0.0, curved_palette) == curved_palette.start
        assert color_at(1.0, curved_palette) == curved_palette.end

    def test_reversed(self, curved_palette):
        assert color_at(0.0, curved_palette, reverse=True) == curved_palette.end
        assert color_at(1.0, curved_palette, reverse=True) == curved_palette.start

    def test_triangular_endpoints(self, triangular_palette):
        assert color_at(0.0, triangular_palette) == triangular_palette.start
        assert color_at(1.0, triangular_palette) == triangular_palette.end

    @pytest.mark.parametrize('power', [0.0, 1e-9, 0.3, 7.0, 1e6])
    def test_endpoints_ignore_power(self, power):
        palette = PaletteDefinition(
            'degenerate',
            PolarLuv(12.3, 33.3, 1.7),
            PolarLuv(-87.1, 0.1, 99.9),
            power_c=power,
            power_l=power,
        )
        assert color_at(0.0, palette) == palette.start
        assert color_at(1.0, palette) == palette.end

    def test_progress_is_clamped(self, curved_palette):
        assert color_at(-0.5, curved_palette) == curved_palette.start
        assert color_at(1.5, curved_palette) == curved_palette.end


class TestTrajectory:

    @pytest.mark.parametrize('p', [0.1, 0.25, 0.5, 0.8, 0.99])
    def test_linear_without_powers(self, grayscale_palette, p):
        color = color_at(p, grayscale_palette)
        assert color.lightness == pytest.approx(100.0 * p)
        assert color.chroma == 0.0

    def test_affine_chroma_and_lightness(self):
        palette = PaletteDefinition.from_dict(_palette_dict(powerC=1, powerL=1))
        for p in np.linspace(0.0, 1.0, 11):
            color = color_at(p, palette)
            assert color.lightness == pytest.approx(15.0 + 75.0 * p)
            assert color.chroma == pytest.approx(40.0 + 55.0 * p)

    def test_power_shapes_lightness(self):
        palette = PaletteDefinition.from_dict(_palette_dict(powerL=2.0))
        assert color_at(0.5, palette).lightness == pytest.approx(15.0 + 75.0 * 0.25)

    def test_reverse_mirrors_progress(self, curved_palette):
        for p in (0.2, 0.45, 0.7):
            assert color_at(p, curved_palette, reverse=True) == color_at(1.0 - p, curved_palette)

    def test_hue_takes_shortest_arc(self):
        palette = PaletteDefinition.from_dict(
            _palette_dict(start={'h': 350, 'C': 10, 'L': 50}, end={'h': 10, 'C': 10, 'L': 50})
        )
        assert color_at(0.5, palette).hue == pytest.approx(360.0)

        # 300 -> 75 is shorter going up through 360
        palette = PaletteDefinition.from_dict(_palette_dict())
        assert color_at(0.5, palette).hue == pytest.approx(300.0 + 67.5)

    def test_hue_half_turn_goes_positive(self):
        palette = PaletteDefinition.from_dict(
            _palette_dict(start={'h': 180, 'C': 10, 'L': 50}, end={'h': 0, 'C': 10, 'L': 50})
        )
        assert color_at(0.5, palette).hue == pytest.approx(270.0)

    def test_hue_wraps_backwards(self):
        # 10 -> 350 is shorter going down through 0
        palette = PaletteDefinition.from_dict(
            _palette_dict(start={'h': 10, 'C': 10, 'L': 50}, end={'h': 350, 'C': 10, 'L': 50})
        )
        assert color_at(0.25, palette).hue == pytest.approx(5.0)
        assert color_at(1.0, palette).hue == 350.0

        # Hues past a full turn still take the short way
        palette = PaletteDefinition.from_dict(
            _palette_dict(start={'h': 730, 'C': 10, 'L': 50}, end={'h': 20, 'C': 10, 'L': 50})
        )
        assert color_at(0.5, palette).hue == pytest.approx(735.0)

    def test_hue_is_linear(self):
        palette = PaletteDefinition.from_dict(
            _palette_dict(start={'h': 20, 'C': 10, 'L': 50}, end={'h': 120, 'C': 10, 'L': 50}, powerC=3.0)
        )
        assert color_at(0.25, palette).hue == pytest.approx(45.0)


class TestTriangularChroma:

    def test_peak_at_midpoint(self, triangular_palette):
        assert color_at(0.5, triangular_palette).chroma == 80.0
        assert color_at(0.0, triangular_palette).chroma == 10.0
        assert color_at(1.0, triangular_palette).chroma == 10.0

    def test_rises_then_falls(self, triangular_palette):
        assert color_at(0.25, triangular_palette).chroma == pytest.approx(45.0)
        assert color_at(0.75, triangular_palette).chroma == pytest.approx(45.0)

        chromas = [color_at(p, triangular_palette).chroma for p in np.linspace(0, 1, 21)]
        peak = int(np.argmax(chromas))
        assert peak == 10
        assert all(a <= b for a, b in zip(chromas[:peak], chromas[1:peak + 1]))
        assert all(a >= b for a, b in zip(chromas[peak:], chromas[peak + 1:]))

    def test_each_half_is_power_shaped(self):
        palette = PaletteDefinition.from_dict(_palette_dict(
            start={'h': 0, 'C': 0, 'L': 50}, end={'h': 0, 'C': 20, 'L': 50},
            powerC=2.0, Cmax=100,
        ))
        # first half: q = 0.5 -> 0.25 of the way from 0 to 100
        assert color_at(0.25, palette).chroma == pytest.approx(25.0)
        # second half: q = 0.5 -> 0.25 of the way from 100 to 20
        assert color_at(0.75, palette).chroma == pytest.approx(80.0)

    def test_custom_split(self):
        palette = PaletteDefinition.from_dict(_palette_dict(
            start={'h': 0, 'C': 0, 'L': 50}, end={'h': 0, 'C': 0, 'L': 50},
            powerC=1.0, Cmax=60, split=0.25,
        ))
        assert color_at(0.25, palette).chroma == 60.0
        assert color_at(0.125, palette).chroma == pytest.approx(30.0)
        assert color_at(0.625, palette).chroma == pytest.approx(30.0)


class TestValidation:

    def test_minimal(self):
        palette = PaletteDefinition.from_dict(_palette_dict())
        assert palette.start == PolarLuv(hue=300.0, chroma=40.0, lightness=15.0)
        assert palette.c_max is None
        assert palette.split == 0.5

    def test_name_is_optional(self):
        data = _palette_dict()
        del data['name']
        assert PaletteDefinition.from_dict(data).name == 'unnamed'

    @pytest.mark.parametrize('field', ['start', 'end', 'powerC', 'powerL'])
    def test_missing_field(self, field):
        data = _palette_dict()
        del data[field]
        with pytest.raises(PaletteError, match=field):
            PaletteDefinition.from_dict(data)

    def test_missing_component(self):
        with pytest.raises(PaletteError, match="end.L"):
            PaletteDefinition.from_dict(_palette_dict(end={'h': 1, 'C': 2}))

    @pytest.mark.parametrize('value', [0, -1.5])
    def test_non_positive_power(self, value):
        with pytest.raises(PaletteError, match='powerC'):
            PaletteDefinition.from_dict(_palette_dict(powerC=value))
        with pytest.raises(PaletteError, match='powerL'):
            PaletteDefinition.from_dict(_palette_dict(powerL=value))

    @pytest.mark.parametrize('value', ['1.0', True, None, [1]])
    def test_non_numeric(self, value):
        with pytest.raises(PaletteError):
            PaletteDefinition.from_dict(_palette_dict(powerL=value))

    def test_non_finite(self):
        with pytest.raises(PaletteError, match='finite'):
            PaletteDefinition.from_dict(_palette_dict(start={'h': float('nan'), 'C': 1, 'L': 1}))

    @pytest.mark.parametrize('split', [0, 1, 1.5, -0.2])
    def test_split_range(self, split):
        with pytest.raises(PaletteError, match='split'):
            PaletteDefinition.from_dict(_palette_dict(Cmax=50, split=split))

    def test_not_an_object(self):
        with pytest.raises(PaletteError):
            PaletteDefinition.from_dict([1, 2, 3])

    def test_logical_ranges_not_enforced(self):
        palette = PaletteDefinition.from_dict(_palette_dict(
            start={'h': -720, 'C': -5, 'L': 130}, Cmax=1,
        ))
        assert palette.start.lightness == 130.0
        assert palette.c_max == 1.0

    def test_as_array_encodes_missing_cmax(self):
        params = PaletteDefinition.from_dict(_palette_dict()).as_array()
        assert params.dtype == np.float64
        assert np.isnan(params[8])


class TestLoading:

    def test_load_palette(self, tmp_path):
        path = tmp_path / 'p.json'
        path.write_text(json.dumps(_palette_dict(Cmax=120)))
        palette = load_palette(path)
        assert palette.name == 'test'
        assert palette.c_max == 120.0

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{"start": ')
        with pytest.raises(PaletteError, match='invalid JSON'):
            load_palette(path)

    def test_load_not_utf8(self, tmp_path):
        path = tmp_path / 'latin.json'
        path.write_bytes(b'\xff\xfe{"start": {}}')
        with pytest.raises(PaletteError, match='invalid JSON'):
            load_palette(path)

    def test_load_reports_path(self, tmp_path):
        path = tmp_path / 'bad.json'
        path.write_text(json.dumps(_palette_dict(powerC=-1)))
        with pytest.raises(PaletteError, match='bad.json'):
            load_palette(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_palette(tmp_path / 'nope.json')

    def test_builtins(self):
        names = list_palette_names()
        assert 'inferno' in names
        assert 'grays' in names
        for name in names:
            palette = get_palette(name)
            assert palette.power_c > 0 and palette.power_l > 0

    def test_builtin_lookup_is_case_insensitive(self):
        assert get_palette('Inferno') == get_palette('inferno')

    def test_unknown_builtin(self):
        with pytest.raises(KeyError):
            get_palette('no-such-palette')

    def test_resolve_palette(self, tmp_path):
        path = tmp_path / 'mine.json'
        path.write_text(json.dumps(_palette_dict(name='mine')))
        assert resolve_palette(str(path)).name == 'mine'
        assert resolve_palette('plasma') == get_palette('plasma')
        with pytest.raises(PaletteError, match='built-ins'):
            resolve_palette('no-such-palette')


def test_palette_swatch(curved_palette):
    colors = palette_swatch(curved_palette, steps=64)
    assert colors.shape == (64, 3)
    assert colors.dtype == np.uint8
    s = curved_palette.start
    e = curved_palette.end
    assert tuple(colors[0]) == lch_to_display(s.lightness, s.chroma, s.hue)
    assert tuple(colors[-1]) == lch_to_display(e.lightness, e.chroma, e.hue)

    reversed_colors = palette_swatch(curved_palette, steps=64, reverse=True)
    assert np.array_equal(reversed_colors[0], colors[-1])
    assert np.array_equal(reversed_colors[-1], colors[0])


def test_palette_swatch_needs_two_steps(curved_palette):
    with pytest.raises(ValueError):
        palette_swatch(curved_palette, steps=1)
