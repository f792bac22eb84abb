import pytest

from signature_service.geometry import NativeRect, from_native, to_native
from signature_service.models import Point, Size


def test_flips_vertical_axis_and_accounts_for_height():
    rect = to_native(Point(300, 400), Size(150, 50), 792)

    assert rect == NativeRect(x=300.0, y=342.0, width=150.0, height=50.0)


def test_horizontal_axis_is_not_flipped():
    rect = to_native(Point(12.5, 0), Size(10, 10), 100)

    assert rect.x == 12.5
    assert rect.y == 90.0


@pytest.mark.parametrize(
    "page_height, x, y, w, h",
    [
        (792, 0, 0, 150, 50),
        (842, 595.2, 841.9, 0.5, 0.25),
        (612, 10.75, 300.125, 148, 33),
    ],
)
def test_inverse_recovers_caller_position(page_height, x, y, w, h):
    rect = to_native(Point(x, y), Size(w, h), page_height)

    assert rect.y == pytest.approx(page_height - y - h)
    position, size = from_native(rect, page_height)
    assert position.x == pytest.approx(x)
    assert position.y == pytest.approx(y)
    assert (size.width, size.height) == (pytest.approx(w), pytest.approx(h))


def test_off_page_rectangles_are_not_clipped():
    rect = to_native(Point(-20, 780), Size(150, 50), 792)

    assert rect.as_tuple() == (-20.0, -38.0, 150.0, 50.0)


def test_returns_floats_for_integer_input():
    rect = to_native(Point(1, 2), Size(3, 4), 10)

    assert all(isinstance(value, float) for value in rect.as_tuple())
