"""Application service: profile, session and reaction use cases.

The active group and profile travel as an explicit SyncContext. Failed
writes raise before local state is touched, and destructive calls need a
positive ``confirm(prompt)`` before the store is called.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from .catalog import DEFAULT_AVATAR
from .context import SyncContext
from .editor import SessionEditor
from .errors import ConfirmationDeclined, GymSyncError, NotOwnerError
from .models import CustomExerciseRegistry, Reaction, Session, User
from .profile_state import ProfileState
from .reactions import GifSource, ReactionPayload, ReactionPicker, attach_reaction
from .realtime import ChangeTransport, LiveCollection
from .store import RecordStore, change_channel

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


class NoActiveProfile(GymSyncError):
    """No profile selected on this device."""


class GymSync:
    def __init__(
        self,
        store: RecordStore,
        state: ProfileState,
        catalog: GifSource | None = None,
    ) -> None:
        self.store = store
        self.state = state
        self.catalog = catalog

    @property
    def sync_code(self) -> str:
        return self.state.sync_code

    def context(self) -> SyncContext:
        user = self.state.current_user
        if user is None:
            raise NoActiveProfile("Select or create a profile first")
        return SyncContext(sync_code=self.sync_code, user=user)

    # --- profiles ---------------------------------------------------------

    async def refresh_users(self) -> list[User]:
        users = await self.store.fetch_users(self.sync_code)
        self.state.set_users(users)
        return users

    async def create_profile(self, name: str, avatar: str = DEFAULT_AVATAR, *, select: bool = True) -> User:
        user = User(name=name, avatar=avatar)
        await self.store.insert_user(self.sync_code, user)
        self.state.upsert_user(user)
        if select:
            self.state.set_current_user(user)
        logger.info("Created profile %s", user.name, extra={"gymsync_sync_code": self.sync_code})
        return user

    async def edit_profile(self, user_id: str, *, name: str | None = None, avatar: str | None = None) -> User:
        existing = next((u for u in self.state.users if u.id == user_id), None)
        if existing is None:
            existing = next((u for u in await self.refresh_users() if u.id == user_id), None)
        if existing is None:
            raise GymSyncError(f"Unknown profile {user_id}")
        changes = {k: v for k, v in {"name": name, "avatar": avatar}.items() if v is not None}
        updated = User.model_validate({**existing.model_dump(), **changes})
        await self.store.update_user(self.sync_code, updated)
        self.state.upsert_user(updated)
        return updated

    async def delete_profile(self, user_id: str, confirm: Confirm) -> None:
        if not confirm(f"Delete profile {user_id}? Logged sessions are kept."):
            raise ConfirmationDeclined("Profile deletion cancelled")
        await self.store.delete_user(self.sync_code, user_id)
        self.state.remove_user(user_id)
        logger.info("Deleted profile %s", user_id)

    def select_profile(self, user_id: str) -> User:
        for user in self.state.users:
            if user.id == user_id:
                self.state.set_current_user(user)
                return user
        raise GymSyncError(f"Unknown profile {user_id}")

    # --- custom exercises -------------------------------------------------

    async def refresh_custom_exercises(self) -> CustomExerciseRegistry:
        registry = await self.store.fetch_custom_exercises(self.sync_code)
        self.state.set_custom_exercises(registry)
        return registry

    async def add_custom_exercise(self, body_part: str, exercise_name: str) -> bool:
        exercise_name = exercise_name.strip()
        if not exercise_name:
            raise ValueError("exercise name must not be empty")
        if exercise_name in self.state.custom_exercises.get(body_part, []):
            return False
        await self.store.insert_custom_exercise(self.sync_code, body_part, exercise_name)
        return self.state.add_custom_exercise(body_part, exercise_name)

    # --- sessions ---------------------------------------------------------

    def new_editor(self, *, today: date | None = None) -> SessionEditor:
        return SessionEditor(self.context(), today=today)

    async def list_sessions(self, *, with_reactions: bool = False) -> list[Session]:
        sessions = await self.store.fetch_sessions(self.sync_code)
        if with_reactions:
            by_session = await self.store.fetch_reactions_by_session(self.sync_code)
            for session in sessions:
                session.reactions = by_session.get(session.id, [])
        return sessions

    async def save_session(self, editor: SessionEditor) -> Session:
        session = editor.commit()
        await self.store.insert_session(session)
        editor.reset()
        return session

    async def delete_session(self, session: Session, confirm: Confirm) -> None:
        ctx = self.context()
        if not session.is_owned_by(ctx.user_id):
            raise NotOwnerError("Only the person who logged a session can delete it")
        if not confirm(f"Delete the {session.type} session on {session.date.isoformat()}?"):
            raise ConfirmationDeclined("Session deletion cancelled")
        await self.store.delete_session(ctx.sync_code, session.id)
        logger.info("Deleted session %s", session.id, extra={"gymsync_session_id": session.id})

    # --- reactions --------------------------------------------------------

    def picker(self) -> ReactionPicker:
        if self.catalog is None:
            raise GymSyncError("No GIF catalog configured")
        return ReactionPicker(self.catalog)

    async def react(self, session: Session, payload: ReactionPayload) -> Reaction:
        return await attach_reaction(self.store, session, self.context().user, payload)

    # --- realtime ---------------------------------------------------------

    def watch_sessions(
        self,
        transport: ChangeTransport,
        *,
        subscribe_delay_seconds: float = 0.5,
        on_change: Callable[[list[Session]], None] | None = None,
    ) -> LiveCollection[Session]:
        sync_code = self.sync_code
        return LiveCollection(
            lambda: self.store.fetch_sessions(sync_code),
            transport,
            change_channel("sessions", sync_code),
            subscribe_delay_seconds=subscribe_delay_seconds,
            on_change=on_change,
        )
