"""Per-engine re-entrancy lock."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from .errors import ReentrantCallError


class ReentrancyGuard:
    """
    Explicit lock flag held for the whole duration of a public operation.

    The flag is set on entry and always cleared on exit, including when the
    guarded body raises.
    """

    def __init__(self) -> None:
        self._entered = False

    @property
    def locked(self) -> bool:
        return self._entered

    @contextmanager
    def hold(self) -> Iterator[None]:
        if self._entered:
            raise ReentrantCallError("re-entrant call into a guarded engine")
        self._entered = True
        try:
            yield
        finally:
            self._entered = False
