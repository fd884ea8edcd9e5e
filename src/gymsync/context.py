from __future__ import annotations

from dataclasses import dataclass

from .models import User


@dataclass(frozen=True)
class SyncContext:
    """Which group and which profile this device is acting as."""

    sync_code: str
    user: User

    @property
    def user_id(self) -> str:
        return self.user.id
