"""Per-package state machine for one command invocation.

Enforces the VALID_TRANSITIONS table:

    UNCHECKED -> CACHED | BUILDING | FAILED
    BUILDING  -> BUILT | FAILED

A lock guards the state table so parallel builds can report into one
machine.
"""

from __future__ import annotations

import logging
import threading

from pit.models.outcomes import VALID_TRANSITIONS, PackageState

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class PackageStateMachine:
    """Tracks the state of every package touched by one command."""

    def __init__(self) -> None:
        self._states: dict[str, PackageState] = {}
        self._history: list[tuple[str, PackageState, PackageState]] = []
        self._lock = threading.Lock()

    def get_state(self, package_name: str) -> PackageState:
        with self._lock:
            return self._states.get(package_name, PackageState.UNCHECKED)

    def get_all_states(self) -> dict[str, PackageState]:
        """Return a snapshot of all tracked states."""
        with self._lock:
            return dict(self._states)

    @property
    def history(self) -> list[tuple[str, PackageState, PackageState]]:
        """Every transition so far as ``(package, from, to)`` tuples."""
        with self._lock:
            return list(self._history)

    def reset(self, package_name: str) -> None:
        """Forget a package so a later command starts it from UNCHECKED."""
        with self._lock:
            self._states.pop(package_name, None)

    def transition(self, package_name: str, target: PackageState) -> PackageState:
        """Move ``package_name`` to ``target``.

        Raises
        ------
        InvalidTransitionError
            If the table does not allow the move.
        """
        with self._lock:
            current = self._states.get(package_name, PackageState.UNCHECKED)
            allowed = VALID_TRANSITIONS.get(current, set())
            if target not in allowed:
                raise InvalidTransitionError(
                    f"Cannot transition {package_name} from {current.value} to {target.value}. "
                    f"Allowed: {sorted(s.value for s in allowed)}"
                )
            self._states[package_name] = target
            self._history.append((package_name, current, target))
        logger.debug("%s: %s -> %s", package_name, current.value, target.value)
        return target
