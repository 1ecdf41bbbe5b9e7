"""Event identifier generation."""
import random
import string
import time
from typing import Callable, Optional

ALPHABET = string.digits + string.ascii_lowercase
SUFFIX_LENGTH = 6


def to_base36(number: int) -> str:
    """Encode a non-negative integer in lowercase base 36."""
    if number < 0:
        raise ValueError('number must be non-negative')
    if number == 0:
        return '0'

    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(ALPHABET[remainder])
    return ''.join(reversed(digits))


class EventIdGenerator:
    """
    Generator of ``evt_<timestamp>_<suffix>`` identifiers.

    The timestamp part is milliseconds in base 36 and strictly increases
    across calls on one instance, even when the clock stalls or steps back.
    The random suffix only makes same-millisecond collisions between
    processes unlikely; it is not a uniqueness guarantee.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None
    ):
        self._clock = clock
        self._rng = rng or random.Random()
        self._last_millis = -1

    def generate(self) -> str:
        millis = int(self._clock() * 1000)
        if millis <= self._last_millis:
            millis = self._last_millis + 1
        self._last_millis = millis

        suffix = ''.join(self._rng.choice(ALPHABET) for _ in range(SUFFIX_LENGTH))
        return f"evt_{to_base36(millis)}_{suffix}"
