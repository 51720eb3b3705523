"""Persist streak state in the ``profile`` collection."""

from __future__ import annotations

from datetime import datetime

from study_companion.core.store import DocumentStore, StoreError

from .status import StreakState, StreakStatus, advance, classify

__all__ = ["PROFILE_COLLECTION", "STREAK_KEY", "StreakTracker"]

PROFILE_COLLECTION = "profile"
STREAK_KEY = "streak"


class StreakTracker:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def load(self) -> StreakState:
        payload = self._store.get(PROFILE_COLLECTION, STREAK_KEY)
        if payload is None:
            return StreakState()
        try:
            return StreakState.from_dict(payload)
        except (TypeError, ValueError) as exc:
            raise StoreError(f"Stored streak state is invalid: {exc}") from exc

    def record_study(self, now: datetime) -> StreakState:
        state = advance(self.load(), now)
        self._store.put(PROFILE_COLLECTION, STREAK_KEY, state.to_dict())
        return state

    def status(self, now: datetime) -> StreakStatus:
        return classify(self.load().last_study_at, now)
