"""
Entry - a stored (key, value) pair.
"""

from dataclasses import dataclass, field

# Estimated per-node overhead of the index (pointers, colour, object headers)
NODE_OVERHEAD_BYTES = 64


@dataclass(frozen=True)
class Entry:
    """
    A key and its opaque byte value.

    Entries are immutable: an overwrite replaces the whole Entry, so a reader
    holding a reference always sees a complete value.

    Attributes:
        key: Non-empty text key.
        value: Arbitrary bytes (may be empty).
    """

    key: str
    value: bytes
    _size_bytes: int = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Cache the estimated footprint on creation."""
        size = len(self.key.encode("utf-8")) + len(self.value) + NODE_OVERHEAD_BYTES
        object.__setattr__(self, "_size_bytes", size)

    def size_bytes(self) -> int:
        return self._size_bytes

    def as_tuple(self) -> tuple[str, bytes]:
        return (self.key, self.value)
