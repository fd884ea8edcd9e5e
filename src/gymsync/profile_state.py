"""Durable per-device state: active sync code, active profile and caches.

Stored as one JSON document. The users roster and custom exercise cache
mirror the record store, which stays authoritative.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .config import DEFAULT_SYNC_CODE
from .models import CustomExerciseRegistry, User

logger = logging.getLogger(__name__)


class ProfileState:
    def __init__(self, path: str | Path, *, default_sync_code: str = DEFAULT_SYNC_CODE) -> None:
        self.path = Path(path)
        self.default_sync_code = default_sync_code
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open() as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable state file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".state-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(self._data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    # --- sync code --------------------------------------------------------

    @property
    def sync_code(self) -> str:
        return self._data.get("sync_code") or self.default_sync_code

    def set_sync_code(self, code: str) -> None:
        """Switch groups; caches and the active profile belong to the old one."""
        code = code.strip()
        if not code:
            raise ValueError("sync code must not be empty")
        if code == self.sync_code:
            return
        self._data = {"sync_code": code}
        self._save()
        logger.info("Switched to sync code %s", code)

    # --- active profile ---------------------------------------------------

    @property
    def current_user(self) -> User | None:
        raw = self._data.get("current_user")
        return User.model_validate(raw) if raw else None

    def set_current_user(self, user: User | None) -> None:
        self._data["current_user"] = user.model_dump(mode="json") if user else None
        self._save()

    # --- roster cache -----------------------------------------------------

    @property
    def users(self) -> list[User]:
        return [User.model_validate(raw) for raw in self._data.get("users", [])]

    def set_users(self, users: list[User]) -> None:
        self._data["users"] = [u.model_dump(mode="json") for u in users]
        current = self.current_user
        if current is not None:
            # Keep the active pointer in step with the latest name/avatar.
            for user in users:
                if user.id == current.id:
                    self._data["current_user"] = user.model_dump(mode="json")
        self._save()

    def upsert_user(self, user: User) -> None:
        users = [u for u in self.users if u.id != user.id]
        users.append(user)
        self.set_users(users)

    def remove_user(self, user_id: str) -> None:
        self._data["users"] = [
            raw for raw in self._data.get("users", []) if raw.get("id") != user_id
        ]
        current = self.current_user
        if current is not None and current.id == user_id:
            self._data["current_user"] = None
        self._save()

    # --- custom exercise cache --------------------------------------------

    @property
    def custom_exercises(self) -> CustomExerciseRegistry:
        raw = self._data.get("custom_exercises") or {}
        return {part: list(names) for part, names in raw.items()}

    def set_custom_exercises(self, registry: CustomExerciseRegistry) -> None:
        self._data["custom_exercises"] = {part: list(names) for part, names in registry.items()}
        self._save()

    def add_custom_exercise(self, body_part: str, exercise_name: str) -> bool:
        """Returns False when the name is already registered for the body part."""
        registry = self.custom_exercises
        names = registry.setdefault(body_part, [])
        if exercise_name in names:
            return False
        names.append(exercise_name)
        self.set_custom_exercises(registry)
        return True
