"""Unit tests for event identifier generation."""
import random
import re

import pytest

from processor.identifiers import EventIdGenerator, to_base36

ID_PATTERN = re.compile(r'^evt_([0-9a-z]+)_([0-9a-z]{6})$')


def timestamp_part(event_id):
    return int(ID_PATTERN.match(event_id).group(1), 36)


class TestEventIdGenerator:
    """Test cases for EventIdGenerator class."""

    def test_format(self):
        """Test the evt_<timestamp>_<suffix> format."""
        generator = EventIdGenerator(clock=lambda: 1700000000.5)

        event_id = generator.generate()

        assert ID_PATTERN.match(event_id)
        assert timestamp_part(event_id) == 1700000000500

    def test_timestamp_strictly_increases(self):
        """Test that a stalled or backwards clock still yields increasing ids."""
        ticks = iter([1000.0, 1000.0, 999.0, 1000.5])
        generator = EventIdGenerator(clock=lambda: next(ticks))

        stamps = [timestamp_part(generator.generate()) for _ in range(4)]

        assert stamps == [1000000, 1000001, 1000002, 1000500]

    def test_suffix_uses_rng(self):
        """Test that the suffix comes from the injected random source."""
        first = EventIdGenerator(clock=lambda: 1.0, rng=random.Random(7)).generate()
        second = EventIdGenerator(clock=lambda: 1.0, rng=random.Random(7)).generate()

        assert first == second

    def test_ids_are_distinct(self):
        generator = EventIdGenerator()

        ids = {generator.generate() for _ in range(200)}

        assert len(ids) == 200


class TestToBase36:
    """Test cases for base 36 encoding."""

    @pytest.mark.parametrize('number, expected', [
        (0, '0'),
        (35, 'z'),
        (36, '10'),
        (1700000000123, to_base36(1700000000123)),
    ])
    def test_encoding(self, number, expected):
        assert to_base36(number) == expected
        assert int(expected, 36) == number

    def test_negative(self):
        with pytest.raises(ValueError):
            to_base36(-1)
