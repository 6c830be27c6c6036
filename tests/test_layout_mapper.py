import pytest

from eventcert.models import Position
from eventcert.shared.certificates_layout import (
    ORIGIN_BOTTOM_LEFT,
    ORIGIN_TOP_LEFT,
    SIZE_MULTIPLIERS,
    get_multipliers,
    to_absolute,
)
from eventcert.constants import TEMPLATE_IDS


def test_raster_origin_is_top_left():
    assert to_absolute(Position(50, 25), 1200, 800, ORIGIN_TOP_LEFT) == (600, 200)


def test_vector_origin_flips_y():
    x, y = to_absolute(Position(10, 10), 842, 595, ORIGIN_BOTTOM_LEFT)
    assert x == pytest.approx(84.2)
    assert y == pytest.approx(595 - 59.5)


@pytest.mark.no_smoke
def test_vector_y_mirrors_raster_y_for_every_position():
    for width, height in ((1200, 800), (842.0, 595.0), (595.0, 842.0)):
        for px in range(0, 101, 5):
            for py in range(0, 101, 5):
                rx, ry = to_absolute(Position(px, py), width, height, ORIGIN_TOP_LEFT)
                vx, vy = to_absolute(Position(px, py), width, height, ORIGIN_BOTTOM_LEFT)
                assert vx == rx
                assert vy == pytest.approx(height - ry)


def test_out_of_range_positions_land_off_canvas():
    x, y = to_absolute(Position(120, -10), 1000, 500)
    assert x == 1200
    assert y == -50


def test_every_template_has_seven_multipliers():
    assert set(SIZE_MULTIPLIERS) == set(TEMPLATE_IDS)
    for mult in SIZE_MULTIPLIERS.values():
        assert mult._fields == (
            "title",
            "name",
            "body",
            "line_height",
            "footer",
            "timestamp",
            "subtitle",
        )
        assert all(value >= 1.0 for value in mult)


def test_unknown_template_uses_modern_multipliers():
    assert get_multipliers("nope") == SIZE_MULTIPLIERS["modern"]
