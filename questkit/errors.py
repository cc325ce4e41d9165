"""Error kinds reported by the questkit engine.

Every error carries a small integer ``code`` so that callers bridging the
engine to a status-code interface can map exceptions without string matching.
The Python-side base classes are chosen so that existing ``except ValueError``
or ``except MemoryError`` handlers keep working.
"""

from __future__ import annotations


class QuestKitError(Exception):
    """Base class for all engine errors."""

    code: int = 255


class OutOfMemory(QuestKitError, MemoryError):
    """The requested register does not fit the configured memory bounds."""

    code = 1


class MalformedCircuit(QuestKitError, ValueError):
    """A circuit byte buffer could not be decoded."""

    code = 2


class InvalidTransaction(QuestKitError, ValueError):
    """Transaction data or sender bytes are outside the accepted bounds."""

    code = 3


class InvalidHandle(QuestKitError, LookupError):
    """A session handle or result buffer is unknown or already released."""

    code = 4


__all__ = [
    "QuestKitError",
    "OutOfMemory",
    "MalformedCircuit",
    "InvalidTransaction",
    "InvalidHandle",
]
