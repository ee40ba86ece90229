"""telcogen Session Registry.

Tracks in-progress call and data-session lifecycles so that every END event
refers to a START that was issued earlier and has not been closed yet.

A single lock guards both maps: ``open`` and ``close_any`` are atomic with
respect to each other, and an entry can be handed out by ``close_any`` at
most once. Entries are never reaped; a session whose END is never generated
stays open for the life of the registry.

Usage::

    registry = SessionRegistry()
    registry.open(SessionKind.CALL, "c1", "2125550100", start_time=now_millis())
    entry = registry.close_any(SessionKind.CALL)   # -> CallSession or None
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Union

from telcogen.errors import DuplicateSessionError


class SessionKind(str, Enum):
    CALL = "call"
    DATA = "data"


@dataclass(frozen=True)
class CallSession:
    """An open voice call awaiting its CALL_END."""

    call_id: str
    caller_phone: str
    start_time: int  # epoch ms

    @property
    def session_id(self) -> str:
        return self.call_id

    @property
    def subject_number(self) -> str:
        return self.caller_phone


@dataclass(frozen=True)
class DataSession:
    """An open data session awaiting its SESSION_END."""

    session_id: str
    phone_number: str
    start_time: int  # epoch ms

    @property
    def subject_number(self) -> str:
        return self.phone_number


LifecycleEntry = Union[CallSession, DataSession]


class SessionRegistry:
    """Thread-safe store of open lifecycle entries, keyed by kind and id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[SessionKind, dict[str, LifecycleEntry]] = {
            SessionKind.CALL: {},
            SessionKind.DATA: {},
        }

    def open(
        self,
        kind: SessionKind,
        session_id: str,
        subject_number: str,
        start_time: int,
    ) -> LifecycleEntry:
        """Register a new open entry and return it.

        Raises:
            DuplicateSessionError: if *session_id* is already open for *kind*.
        """
        kind = SessionKind(kind)
        if kind is SessionKind.CALL:
            entry: LifecycleEntry = CallSession(session_id, subject_number, start_time)
        else:
            entry = DataSession(session_id, subject_number, start_time)

        with self._lock:
            entries = self._entries[kind]
            if session_id in entries:
                raise DuplicateSessionError(kind.value, session_id)
            entries[session_id] = entry
        return entry

    def close_any(self, kind: SessionKind) -> LifecycleEntry | None:
        """Remove and return an arbitrary open entry of *kind*.

        Which entry is returned is unspecified. Returns ``None`` when no
        entry of *kind* is open.
        """
        with self._lock:
            entries = self._entries[SessionKind(kind)]
            if not entries:
                return None
            session_id = next(iter(entries))
            return entries.pop(session_id)

    def close(self, kind: SessionKind, session_id: str) -> LifecycleEntry | None:
        """Remove and return the entry with *session_id*, if it is open."""
        with self._lock:
            return self._entries[SessionKind(kind)].pop(session_id, None)

    def is_open(self, kind: SessionKind, session_id: str) -> bool:
        with self._lock:
            return session_id in self._entries[SessionKind(kind)]

    def count(self, kind: SessionKind) -> int:
        with self._lock:
            return len(self._entries[SessionKind(kind)])

    def clear(self) -> None:
        """Forget every open entry of every kind."""
        with self._lock:
            for entries in self._entries.values():
                entries.clear()
