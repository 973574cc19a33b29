"""Push-key generator for store record keys.

A key is 20 characters: 8 encode the creation millisecond, 12 are random.
The alphabet is in ASCII order, so sorting keys as plain strings sorts
records by creation time, the order every collection listing relies on.

Keys minted in the same millisecond (or after the clock stepped back) reuse
the previous random tail incremented by one, which keeps them strictly
increasing within a process.
"""

import secrets
import threading
import time

PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"
_BASE = len(PUSH_CHARS)
_TIME_CHARS = 8
_RANDOM_CHARS = 12
KEY_LENGTH = _TIME_CHARS + _RANDOM_CHARS


class PushKeyGenerator:
    def __init__(self) -> None:
        self._last_ms = -1
        self._last_random: list[int] = [0] * _RANDOM_CHARS
        self._lock = threading.Lock()

    def next_key(self) -> str:
        with self._lock:
            now = self._current_ms()
            if now <= self._last_ms:
                self._increment_random()
                now = self._last_ms
            else:
                self._last_random = [secrets.randbelow(_BASE) for _ in range(_RANDOM_CHARS)]
            self._last_ms = now
            return encode_time(now) + "".join(PUSH_CHARS[i] for i in self._last_random)

    def _increment_random(self) -> None:
        i = _RANDOM_CHARS - 1
        while i >= 0 and self._last_random[i] == _BASE - 1:
            self._last_random[i] = 0
            i -= 1
        if i < 0:
            # 64**12 keys in one millisecond: move on to the next one
            self._last_ms += 1
            return
        self._last_random[i] += 1

    def _current_ms(self) -> int:
        return int(time.time() * 1000)


def encode_time(ms: int) -> str:
    chars = []
    for _ in range(_TIME_CHARS):
        ms, digit = divmod(ms, _BASE)
        chars.append(PUSH_CHARS[digit])
    return "".join(reversed(chars))


_default_generator = PushKeyGenerator()


def generate_id() -> str:
    """New time-ordered record key from the process-wide generator."""
    return _default_generator.next_key()
