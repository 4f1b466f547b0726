# Application state container for API consumers (auth, notifications, search filters).
# Passed explicitly to whoever needs it; auth and filters are persisted to a JSON file on every write.
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Literal, Optional, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..schemas import UserRead
from .query_params import SearchFilters

logger = logging.getLogger("estatefinder.client.store")

Listener = Callable[["AppStore"], None]


class AuthState(BaseModel):
    token: str = ""
    user_id: Optional[int] = None
    role: str = ""
    first_name: str = ""
    last_name: str = ""


class Notification(BaseModel):
    id: int
    type: Literal["success", "error", "info"]
    message: str


# Subset of the store written to disk
class PersistedState(BaseModel):
    auth_state: AuthState = Field(default_factory=AuthState)
    search_filter_state: SearchFilters = Field(default_factory=SearchFilters)


class AppStore:
    def __init__(self, persist_path: Optional[Union[str, Path]] = None):
        self.persist_path = Path(persist_path) if persist_path else None
        self.auth_state = AuthState()
        self.search_filters = SearchFilters()
        self.notifications: List[Notification] = []
        self._next_notification_id = 1
        self._listeners: List[Listener] = []
        self._hydrate()

    # ----------------
    # Persistence
    # ----------------
    def _hydrate(self) -> None:
        if self.persist_path is None or not self.persist_path.is_file():
            return
        try:
            state = PersistedState.model_validate_json(self.persist_path.read_text(encoding="utf-8"))
        except (OSError, PydanticValidationError) as exc:
            logger.warning("Ignoring unreadable store file %s: %s", self.persist_path, exc)
            return
        self.auth_state = state.auth_state
        self.search_filters = state.search_filter_state

    def _persist(self) -> None:
        if self.persist_path is None:
            return
        state = PersistedState(auth_state=self.auth_state, search_filter_state=self.search_filters)
        self.persist_path.parent.mkdir(parents=True, exist_ok=True)
        self.persist_path.write_text(state.model_dump_json(), encoding="utf-8")

    def _commit(self, persist: bool = True) -> None:
        if persist:
            self._persist()
        for listener in list(self._listeners):
            listener(self)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ----------------
    # Actions
    # ----------------
    @property
    def is_authenticated(self) -> bool:
        return bool(self.auth_state.token)

    def set_auth_state(self, token: str, user: UserRead) -> None:
        self.auth_state = AuthState(
            token=token,
            user_id=user.id,
            role=user.role,
            first_name=user.first_name,
            last_name=user.last_name,
        )
        self._commit()

    def clear_auth_state(self) -> None:
        self.auth_state = AuthState()
        self._commit()

    def add_notification(self, type: Literal["success", "error", "info"], message: str) -> Notification:
        notification = Notification(id=self._next_notification_id, type=type, message=message)
        self._next_notification_id += 1
        self.notifications.append(notification)
        self._commit(persist=False)
        return notification

    def remove_notification(self, notification_id: int) -> None:
        self.notifications = [n for n in self.notifications if n.id != notification_id]
        self._commit(persist=False)

    def clear_notifications(self) -> None:
        self.notifications = []
        self._commit(persist=False)

    def set_search_filters(self, filters: SearchFilters) -> None:
        self.search_filters = filters
        self._commit()
