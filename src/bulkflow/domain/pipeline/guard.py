"""Re-entrancy guard for mutation passes."""

from __future__ import annotations


class RecursionGuard:
    """Cooperative flag that keeps a pass from starting while another one runs.

    Passes that must exclude each other share one guard instance. Every
    ``enter`` is paired with one ``exit``, including a rejected ``enter``: the
    guard counts entries, so a rejected caller releasing its own entry leaves
    the holder's in place. It is a single-threaded contract, not a lock.
    """

    __slots__ = ("_depth", "name")

    def __init__(self, name: str = "pass") -> None:
        self.name = name
        self._depth = 0

    @property
    def held(self) -> bool:
        return self._depth > 0

    def enter(self) -> bool:
        """Take the guard; return ``False`` if it is already held."""

        self._depth += 1
        return self._depth == 1

    def exit(self) -> None:
        """Release one entry. Safe to call when the guard is not held."""

        if self._depth > 0:
            self._depth -= 1

    def __repr__(self) -> str:
        return f"RecursionGuard(name={self.name!r}, held={self.held})"
