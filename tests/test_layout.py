from __future__ import annotations

import pytest

from novelvn.engine.surface_utils import fit_size, place


@pytest.mark.parametrize("mode,expected", [
    ("cover", (1440, 720)),
    ("contain", (1280, 640)),
    ("100% 100%", (1280, 720)),
])
def test_fit_size_modes(mode, expected):
    # 2:1 image on a 16:9 canvas
    assert fit_size((400, 200), (1280, 720), mode) == expected


def test_fit_size_degenerate_source():
    assert fit_size((0, 10), (1280, 720), "cover") == (1280, 720)


def test_place_positions():
    size, dst = (1440, 720), (1280, 720)
    assert place(size, dst, "center") == (-80, 0)
    assert place(size, dst, "left") == (0, 0)
    assert place(size, dst, "right") == (-160, 0)
    assert place((1280, 640), dst, "top") == (0, 0)
    assert place((1280, 640), dst, "bottom") == (0, 80)
