# Pixel blend modes, matching Aseprite's own integer math
#
# Every mode computes a blended RGB from backdrop and source, keeps the
# source alpha, and then composites the result with normal() (which is
# where opacity is applied).

import enum
import math
from typing import Callable, Dict, List

from asesheet.colors import TRANSPARENT, Rgba


class BlendMode(enum.IntEnum):
    NORMAL = 0
    MULTIPLY = 1
    SCREEN = 2
    OVERLAY = 3
    DARKEN = 4
    LIGHTEN = 5
    COLOR_DODGE = 6
    COLOR_BURN = 7
    HARD_LIGHT = 8
    SOFT_LIGHT = 9
    DIFFERENCE = 10
    EXCLUSION = 11
    HUE = 12
    SATURATION = 13
    COLOR = 14
    LUMINOSITY = 15
    ADDITION = 16
    SUBTRACT = 17
    DIVIDE = 18


def mul_un8(a: int, b: int) -> int:
    t = a * b + 0x80
    return ((t >> 8) + t) >> 8


def div_un8(a: int, b: int) -> int:
    return (a * 0xFF + b // 2) // b


def _div_trunc(a: int, b: int) -> int:
    # Integer division rounding toward zero
    q = abs(a) // b
    return q if a >= 0 else -q


def blend(mode: BlendMode, backdrop: Rgba, source: Rgba, opacity: int) -> Rgba:
    """Composites source over backdrop with the given mode and opacity."""

    if backdrop[3] == 0 and source[3] == 0:
        return TRANSPARENT
    if backdrop[3] == 0:
        return normal(backdrop, source, opacity)
    if source[3] == 0:
        return backdrop
    return _MODES[mode](backdrop, source, opacity)


def normal(backdrop: Rgba, source: Rgba, opacity: int) -> Rgba:
    br, bg, bb, ba = backdrop
    sr, sg, sb, sa = source

    if ba == 0:
        return (sr, sg, sb, mul_un8(sa, opacity))
    if sa == 0:
        return backdrop

    sa = mul_un8(sa, opacity)
    ra = sa + ba - mul_un8(ba, sa)
    return (
        br + _div_trunc((sr - br) * sa, ra),
        bg + _div_trunc((sg - bg) * sa, ra),
        bb + _div_trunc((sb - bb) * sa, ra),
        ra,
    )


def _channelwise(func: Callable[[int, int], int]):
    def mode(backdrop: Rgba, source: Rgba, opacity: int) -> Rgba:
        blended = (
            func(backdrop[0], source[0]),
            func(backdrop[1], source[1]),
            func(backdrop[2], source[2]),
            source[3],
        )
        return normal(backdrop, blended, opacity)

    mode.__name__ = func.__name__
    return mode


@_channelwise
def multiply(b: int, s: int) -> int:
    return mul_un8(b, s)


@_channelwise
def screen(b: int, s: int) -> int:
    return b + s - mul_un8(b, s)


@_channelwise
def overlay(b: int, s: int) -> int:
    if b < 128:
        return mul_un8(s, b << 1)
    b = (b << 1) - 255
    return s + b - mul_un8(s, b)


@_channelwise
def darken(b: int, s: int) -> int:
    return min(b, s)


@_channelwise
def lighten(b: int, s: int) -> int:
    return max(b, s)


@_channelwise
def color_dodge(b: int, s: int) -> int:
    if b == 0:
        return 0
    s = 255 - s
    return 255 if b >= s else div_un8(b, s)


@_channelwise
def color_burn(b: int, s: int) -> int:
    if b == 255:
        return 255
    b = 255 - b
    return 0 if b >= s else 255 - div_un8(b, s)


@_channelwise
def hard_light(b: int, s: int) -> int:
    if s < 128:
        return mul_un8(b, s << 1)
    s = (s << 1) - 255
    return b + s - mul_un8(b, s)


@_channelwise
def soft_light(b_int: int, s_int: int) -> int:
    b = b_int / 255.0
    s = s_int / 255.0
    d = ((16 * b - 12) * b + 4) * b if b <= 0.25 else math.sqrt(b)
    if s <= 0.5:
        r = b - (1.0 - 2.0 * s) * b * (1.0 - b)
    else:
        r = b + (2.0 * s - 1.0) * (d - b)
    return int(r * 255 + 0.5)


@_channelwise
def difference(b: int, s: int) -> int:
    return abs(b - s)


@_channelwise
def exclusion(b: int, s: int) -> int:
    return b + s - 2 * mul_un8(b, s)


@_channelwise
def addition(b: int, s: int) -> int:
    return min(b + s, 255)


@_channelwise
def subtract(b: int, s: int) -> int:
    return max(b - s, 0)


@_channelwise
def divide(b: int, s: int) -> int:
    if b == 0:
        return 0
    return 255 if b >= s else div_un8(b, s)


# HSL-family helpers, in [0, 1] double precision

Rgb = List[float]


def _sat(c: Rgb) -> float:
    return max(c) - min(c)


def _lum(c: Rgb) -> float:
    return 0.3 * c[0] + 0.59 * c[1] + 0.11 * c[2]


def _set_sat(c: Rgb, s: float):
    r, g, b = c

    def lo(i, j):
        return i if c[i] < c[j] else j

    def hi(i, j):
        return i if c[i] > c[j] else j

    low = lo(0, lo(1, 2))
    high = hi(0, hi(1, 2))
    if r > g:
        mid = 1 if g > b else (2 if r > b else 0)
    else:
        mid = (2 if b > r else 0) if g > b else 1

    if c[high] > c[low]:
        c[mid] = (c[mid] - c[low]) * s / (c[high] - c[low])
        c[high] = s
    else:
        c[mid] = c[high] = 0.0
    c[low] = 0.0


def _clip_color(c: Rgb):
    l = _lum(c)
    n = min(c)
    x = max(c)
    if n < 0 and l != n:
        c[:] = [l + (v - l) * l / (l - n) for v in c]
    if x > 1 and x != l:
        c[:] = [l + (v - l) * (1 - l) / (x - l) for v in c]


def _set_lum(c: Rgb, l: float):
    d = l - _lum(c)
    c[:] = [v + d for v in c]
    _clip_color(c)


def _unit(color: Rgba) -> Rgb:
    return [color[0] / 255.0, color[1] / 255.0, color[2] / 255.0]


def _hsl_result(c: Rgb, source: Rgba) -> Rgba:
    r, g, b = (min(255, max(0, int(255.0 * v))) for v in c)
    return (r, g, b, source[3])


def hue(backdrop: Rgba, source: Rgba, opacity: int) -> Rgba:
    base = _unit(backdrop)
    c = _unit(source)
    _set_sat(c, _sat(base))
    _set_lum(c, _lum(base))
    return normal(backdrop, _hsl_result(c, source), opacity)


def saturation(backdrop: Rgba, source: Rgba, opacity: int) -> Rgba:
    s = _sat(_unit(source))
    c = _unit(backdrop)
    l = _lum(c)
    _set_sat(c, s)
    _set_lum(c, l)
    return normal(backdrop, _hsl_result(c, source), opacity)


def color(backdrop: Rgba, source: Rgba, opacity: int) -> Rgba:
    c = _unit(source)
    _set_lum(c, _lum(_unit(backdrop)))
    return normal(backdrop, _hsl_result(c, source), opacity)


def luminosity(backdrop: Rgba, source: Rgba, opacity: int) -> Rgba:
    l = _lum(_unit(source))
    c = _unit(backdrop)
    _set_lum(c, l)
    return normal(backdrop, _hsl_result(c, source), opacity)


_MODES: Dict[BlendMode, Callable[[Rgba, Rgba, int], Rgba]] = {
    BlendMode.NORMAL: normal,
    BlendMode.MULTIPLY: multiply,
    BlendMode.SCREEN: screen,
    BlendMode.OVERLAY: overlay,
    BlendMode.DARKEN: darken,
    BlendMode.LIGHTEN: lighten,
    BlendMode.COLOR_DODGE: color_dodge,
    BlendMode.COLOR_BURN: color_burn,
    BlendMode.HARD_LIGHT: hard_light,
    BlendMode.SOFT_LIGHT: soft_light,
    BlendMode.DIFFERENCE: difference,
    BlendMode.EXCLUSION: exclusion,
    BlendMode.HUE: hue,
    BlendMode.SATURATION: saturation,
    BlendMode.COLOR: color,
    BlendMode.LUMINOSITY: luminosity,
    BlendMode.ADDITION: addition,
    BlendMode.SUBTRACT: subtract,
    BlendMode.DIVIDE: divide,
}
