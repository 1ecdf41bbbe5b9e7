"""Unit tests for the haversine distance calculator."""
import math

import pytest

from processor.geo import haversine_km, to_radians
from processor.models import Coordinates

MILAN = Coordinates(45.4642, 9.1900)
ROME = Coordinates(41.9028, 12.4964)
PARMA = Coordinates(44.8015, 10.3279)


class TestHaversine:
    """Test cases for haversine_km."""

    @pytest.mark.parametrize('point', [MILAN, ROME, Coordinates(0.0, 0.0), Coordinates(-89.9, 179.9)])
    def test_same_point_is_zero(self, point):
        """Test that the distance from a point to itself is zero."""
        assert haversine_km(point, point) == 0

    @pytest.mark.parametrize('a, b', [
        (MILAN, ROME),
        (PARMA, MILAN),
        (Coordinates(0.0, 0.0), Coordinates(0.0, 180.0)),
        (Coordinates(-33.86, 151.21), Coordinates(51.5, -0.12)),
    ])
    def test_symmetric(self, a, b):
        """Test that distance does not depend on argument order."""
        assert haversine_km(a, b) == pytest.approx(haversine_km(b, a), rel=1e-6)

    def test_known_distance(self):
        """Test Milan to Rome against the published great-circle distance."""
        assert haversine_km(MILAN, ROME) == pytest.approx(477, abs=2)

    def test_one_degree_of_latitude(self):
        expected = 6371 * math.pi / 180
        assert haversine_km(Coordinates(10.0, 20.0), Coordinates(11.0, 20.0)) == pytest.approx(expected)

    def test_monotonic_with_separation(self):
        """Test that distance grows with angular separation."""
        origin = Coordinates(45.0, 9.0)
        distances = [
            haversine_km(origin, Coordinates(45.0 + step, 9.0))
            for step in (0.01, 0.1, 1.0, 10.0, 40.0)
        ]

        assert distances == sorted(distances)
        assert len(set(distances)) == len(distances)

    def test_antipodal(self):
        """Test half the circumference for antipodal points."""
        distance = haversine_km(Coordinates(0.0, 0.0), Coordinates(0.0, 180.0))
        assert distance == pytest.approx(6371 * math.pi)


def test_to_radians():
    assert to_radians(180) == pytest.approx(math.pi)
    assert to_radians(0) == 0
