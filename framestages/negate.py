"""Image negation: invert every byte of a frame buffer."""

from __future__ import annotations

_INVERT = bytes(255 - i for i in range(256))


def negate(buffer: bytearray | memoryview) -> None:
    """Invert every byte of ``buffer`` in place."""
    view = memoryview(buffer)
    if view.readonly:
        raise TypeError("negate needs a writable buffer")
    view = view.cast("B")
    view[:] = view.tobytes().translate(_INVERT)