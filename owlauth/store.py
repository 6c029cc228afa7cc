"""Credential and session-transcript stores used around the server role."""

from __future__ import annotations

import json
import os
import secrets
import threading
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from .constants import CONSUMED_SESSION_HISTORY
from .errors import DeserializationError
from .group import Curve
from .messages import AuthInitialValues, UserCredentials


class CredentialStore:
    """Persist one :class:`UserCredentials` record per username in a JSON file."""

    def __init__(self, path: str, curve: Curve) -> None:
        self.path = path
        self.curve = Curve.parse(curve)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, dict]:
        if not os.path.exists(self.path):
            return {"users": {}}
        with open(self.path, "r", encoding="utf-8") as handle:
            try:
                payload = json.load(handle)
            except ValueError as exc:
                raise DeserializationError(f"Credential store {self.path} is not valid JSON") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("users", {}), dict):
            raise DeserializationError(f"Credential store {self.path} has an unexpected layout")
        return payload

    def _save(self, payload: Dict[str, dict]) -> None:
        with open(self.path, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)

    def put(self, username: str, credentials: UserCredentials) -> None:
        """Store ``credentials``, replacing any earlier registration."""

        with self._lock:
            payload = self._load()
            payload.setdefault("users", {})[username] = credentials.to_dict()
            self._save(payload)

    def get(self, username: str) -> Optional[UserCredentials]:
        """Return the record for ``username``, or ``None`` if it was never registered.

        Raises :class:`DeserializationError` when the stored data does not
        decode for this store's curve.
        """

        with self._lock:
            raw = self._load().get("users", {}).get(username)
        if raw is None:
            return None
        return UserCredentials.from_dict(raw, self.curve)

    def remove(self, username: str) -> bool:
        with self._lock:
            payload = self._load()
            removed = payload.get("users", {}).pop(username, None) is not None
            if removed:
                self._save(payload)
        return removed

    def __contains__(self, username: str) -> bool:
        with self._lock:
            return username in self._load().get("users", {})


class LookupStatus(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ALREADY_CONSUMED = "already_consumed"


@dataclass
class TranscriptLookup:
    status: LookupStatus
    username: Optional[str] = None
    initial: Optional[AuthInitialValues] = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


class SessionStore:
    """Single-use in-memory home for transcripts between auth_init and auth_finish.

    Only the most recent ``history`` consumed ids are remembered; an older
    replay reports ``NOT_FOUND`` instead of ``ALREADY_CONSUMED``.
    """

    def __init__(self, curve: Curve, history: int = CONSUMED_SESSION_HISTORY) -> None:
        if history < 1:
            raise ValueError("history must be positive")
        self.curve = Curve.parse(curve)
        self.history = history
        self._sessions: Dict[str, Tuple[str, dict]] = {}
        self._consumed: OrderedDict[str, None] = OrderedDict()
        self._lock = threading.Lock()

    def create(self, username: str, initial: AuthInitialValues) -> str:
        session_id = secrets.token_urlsafe(16)
        with self._lock:
            self._sessions[session_id] = (username, initial.to_dict())
        return session_id

    def take(self, session_id: str) -> TranscriptLookup:
        """Remove and return the transcript stored under ``session_id``."""

        with self._lock:
            entry = self._sessions.pop(session_id, None)
            if entry is None:
                if session_id in self._consumed:
                    return TranscriptLookup(LookupStatus.ALREADY_CONSUMED)
                return TranscriptLookup(LookupStatus.NOT_FOUND)
            self._remember_consumed(session_id)
        username, raw = entry
        return TranscriptLookup(
            LookupStatus.FOUND,
            username=username,
            initial=AuthInitialValues.from_dict(raw, self.curve),
        )

    def _remember_consumed(self, session_id: str) -> None:
        self._consumed[session_id] = None
        while len(self._consumed) > self.history:
            self._consumed.popitem(last=False)

    @property
    def consumed_count(self) -> int:
        return len(self._consumed)

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = [
    "CredentialStore",
    "LookupStatus",
    "SessionStore",
    "TranscriptLookup",
]
