"""
Session storage for the SSE transport.

The manager only talks to the ``SessionStore`` interface, so the in-memory
dict can be replaced by a shared store when the server runs in more than one
process. The in-memory store relies on the event loop being single threaded:
each call completes between suspension points, so no locking is needed. A
store shared across processes has to provide its own locking.
"""

from abc import ABC, abstractmethod
from typing import Dict, Generic, Iterator, Optional, TypeVar

SessionT = TypeVar("SessionT")


class SessionStore(ABC, Generic[SessionT]):
    @abstractmethod
    def get(self, session_id: str) -> Optional[SessionT]:
        """Return the session, or None if it is unknown or closed."""
        ...

    @abstractmethod
    def set(self, session_id: str, session: SessionT) -> None:
        ...

    @abstractmethod
    def delete(self, session_id: str) -> None:
        """Forget the session. Unknown ids are ignored."""
        ...


class InMemorySessionStore(SessionStore[SessionT]):
    def __init__(self) -> None:
        self._sessions: Dict[str, SessionT] = {}

    def get(self, session_id: str) -> Optional[SessionT]:
        return self._sessions.get(session_id)

    def set(self, session_id: str, session: SessionT) -> None:
        if session_id in self._sessions:
            raise ValueError(f"Session id already in use: {session_id}")
        self._sessions[session_id] = session

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._sessions))
