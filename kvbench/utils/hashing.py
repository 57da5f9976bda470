"""
64-bit FNV-1 hashing.

See http://en.wikipedia.org/wiki/Fowler_Noll_Vo_hash. FNV-1 multiplies by the
prime before folding in each byte (FNV-1a does the reverse).
"""

from __future__ import annotations

FNV_OFFSET_BASIS_64 = 0xCBF29CE484222325
FNV_PRIME_64 = 1099511628211
_MASK_64 = (1 << 64) - 1


def fnv1_64(data: bytes, h: int = FNV_OFFSET_BASIS_64) -> int:
    """
    FNV-1 hash of a byte string, as an unsigned 64-bit integer.

    Pass the hash of a prefix as `h` to continue hashing where it left off:
    `fnv1_64(b, fnv1_64(a)) == fnv1_64(a + b)`.
    """
    for byte in data:
        h = (h * FNV_PRIME_64) & _MASK_64
        h ^= byte
    return h


def fnvhash64(value: int) -> int:
    """FNV-1 hash of the 8 little-endian bytes of a 64-bit integer."""
    return fnv1_64((value & _MASK_64).to_bytes(8, "little"))


__all__ = ["FNV_OFFSET_BASIS_64", "FNV_PRIME_64", "fnv1_64", "fnvhash64"]
