import itertools

from asesheet.blend import BlendMode, blend, div_un8, mul_un8

SAMPLES = [
    (0, 0, 0, 255),
    (255, 255, 255, 255),
    (255, 128, 0, 255),
    (12, 200, 99, 128),
    (60, 60, 60, 1),
]


def test_mul_un8():
    assert mul_un8(255, 255) == 255
    for x in range(256):
        assert mul_un8(0, x) == 0
        assert mul_un8(x, 255) == x
    for a, b in itertools.product(range(0, 256, 15), repeat=2):
        assert mul_un8(a, b) == mul_un8(b, a)
        assert mul_un8(a, b) == round(a * b / 255)


def test_div_un8():
    assert div_un8(255, 255) == 255
    assert div_un8(0, 17) == 0
    assert div_un8(64, 128) == 128


def test_normal_over_transparent_scales_alpha():
    source = (10, 20, 30, 200)
    out = blend(BlendMode.NORMAL, (0, 0, 0, 0), source, 128)
    assert out == (10, 20, 30, mul_un8(200, 128))


def test_transparent_source_keeps_backdrop():
    backdrop = (40, 50, 60, 255)
    for mode in BlendMode:
        assert blend(mode, backdrop, (9, 9, 9, 0), 255) == backdrop


def test_both_transparent():
    for mode in BlendMode:
        assert blend(mode, (1, 2, 3, 0), (4, 5, 6, 0), 255) == (0, 0, 0, 0)


def test_opaque_normal_replaces():
    source = (1, 2, 3, 255)
    assert blend(BlendMode.NORMAL, (200, 100, 50, 255), source, 255) == source


def test_half_opacity_normal():
    out = blend(BlendMode.NORMAL, (0, 0, 0, 255), (255, 255, 255, 255), 128)
    assert out == (128, 128, 128, 255)


def test_channel_modes():
    backdrop = (255, 128, 0, 255)
    gray = (128, 128, 128, 255)
    assert blend(BlendMode.MULTIPLY, backdrop, gray, 255) == (128, 64, 0, 255)
    assert blend(BlendMode.SCREEN, backdrop, gray, 255) == (
        255,
        192,
        128,
        255,
    )
    assert blend(BlendMode.DARKEN, backdrop, gray, 255) == (128, 128, 0, 255)
    assert blend(BlendMode.LIGHTEN, backdrop, gray, 255) == (
        255,
        128,
        128,
        255,
    )
    assert blend(BlendMode.DIFFERENCE, backdrop, gray, 255) == (
        127,
        0,
        128,
        255,
    )
    assert blend(BlendMode.ADDITION, backdrop, gray, 255) == (
        255,
        255,
        128,
        255,
    )
    assert blend(BlendMode.SUBTRACT, backdrop, gray, 255) == (127, 0, 0, 255)


def test_every_mode_stays_in_range():
    for mode, backdrop, source, opacity in itertools.product(
        BlendMode, SAMPLES, SAMPLES, (0, 77, 255)
    ):
        out = blend(mode, backdrop, source, opacity)
        assert len(out) == 4
        assert all(0 <= channel <= 255 for channel in out), (mode, out)


def _opaque(mode, backdrop, source):
    return blend(mode, backdrop + (255,), source + (255,), 255)[:3]


def test_overlay_and_hard_light_branch_on_opposite_inputs():
    gray = (100, 100, 100)
    mixed = (64, 200, 128)  # below, above and at the 128 split
    assert _opaque(BlendMode.OVERLAY, mixed, gray) == (50, 188, 101)
    assert _opaque(BlendMode.OVERLAY, gray, mixed) == (50, 157, 100)
    assert _opaque(BlendMode.HARD_LIGHT, gray, mixed) == (50, 188, 101)
    assert _opaque(BlendMode.HARD_LIGHT, mixed, gray) == (50, 157, 100)


def test_dodge_burn_divide():
    gray = (100, 100, 100)
    assert _opaque(BlendMode.COLOR_DODGE, (0, 200, 100), gray) == (
        0,
        255,
        165,
    )
    assert _opaque(BlendMode.COLOR_BURN, (255, 50, 200), gray) == (
        255,
        0,
        115,
    )
    assert _opaque(BlendMode.DIVIDE, (0, 200, 50), gray) == (0, 255, 128)


def test_soft_light_and_exclusion():
    assert _opaque(BlendMode.SOFT_LIGHT, (51, 51, 204), (0, 255, 255)) == (
        10,
        114,
        228,
    )
    assert _opaque(BlendMode.EXCLUSION, (255, 128, 0), (128, 128, 128)) == (
        127,
        128,
        128,
    )


def test_hsl_modes():
    orange = (200, 100, 50)
    gray = (153, 153, 153)
    red = (255, 0, 0)
    assert _opaque(BlendMode.HUE, orange, red) == (229, 79, 79)
    assert _opaque(BlendMode.SATURATION, orange, red) == (250, 83, 0)
    assert _opaque(BlendMode.COLOR, gray, orange) == (228, 128, 78)
    assert _opaque(BlendMode.LUMINOSITY, orange, gray) == (228, 128, 78)
    assert _opaque(BlendMode.LUMINOSITY, (0, 0, 0), (255, 255, 0)) == (
        226,
        226,
        226,
    )
