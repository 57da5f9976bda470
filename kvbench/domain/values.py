"""
Record value streams.

A record is handed to the backend as a mapping from field name to a readable
byte stream. Two kinds exist:

- `DeterministicValue`: fixed content derived from key and field name, used
  when data integrity checks are on so reads can be verified byte for byte.
- `RandomBytes`: alphanumeric filler generated only as it is read, which keeps
  memory and CPU low when nobody checks the content.
"""

from __future__ import annotations

import io
import random
import string
from typing import Any, Optional, Union

_ALPHANUMERIC = (string.ascii_letters + string.digits).encode("ascii")


class DeterministicValue(io.BytesIO):
    """A cursor over the UTF-8 bytes of a deterministic string."""

    def __init__(self, text: Union[str, bytes]) -> None:
        data = text.encode("utf-8") if isinstance(text, str) else text
        super().__init__(data)
        self.size = len(data)

    def clone(self) -> "DeterministicValue":
        """Return an unread copy with the same content."""
        return DeterministicValue(self.getvalue())

    def __repr__(self) -> str:
        return f"DeterministicValue(size={self.size})"


class RandomBytes(io.RawIOBase):
    """
    A lazily generated stream of `size` random alphanumeric bytes.

    Nothing is allocated up front; each `read` produces at most the requested
    number of bytes until `size` bytes have been handed out.
    """

    def __init__(self, size: int, rng: Optional[random.Random] = None) -> None:
        super().__init__()
        self.size = size
        self._remaining = size
        self._rng = rng or random.Random()

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        view = memoryview(buffer).cast("B")
        n = min(len(view), self._remaining)
        if n:
            view[:n] = bytes(self._rng.choices(_ALPHANUMERIC, k=n))
            self._remaining -= n
        return n

    def clone(self) -> "RandomBytes":
        """Return an unread stream of the same length."""
        return RandomBytes(self.size, self._rng)

    def __repr__(self) -> str:
        return f"RandomBytes(size={self.size}, remaining={self._remaining})"


Value = Union[DeterministicValue, RandomBytes]


def read_value(value: Any) -> bytes:
    """
    Read a value returned by a backend into bytes.

    Backends may hand back a readable stream, raw bytes, or a string.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    if hasattr(value, "read"):
        data = value.read()
        return data.encode("utf-8") if isinstance(data, str) else bytes(data)
    raise TypeError(f"unsupported value type {type(value).__name__}")


__all__ = ["DeterministicValue", "RandomBytes", "Value", "read_value"]
