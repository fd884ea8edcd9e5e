"""Record store client: users, sessions, custom exercises and reactions.

All rows are scoped by ``sync_code``. The connection runs in autocommit
mode, so every write stands alone; concurrent devices are last-write-wins.
Any psycopg failure surfaces as BackendError and nothing is retried. Rows
that fail model validation are skipped with a warning.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import psycopg
import pydantic
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from .errors import BackendError
from .models import CustomExerciseRegistry, Reaction, Session, User

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=pydantic.BaseModel)

RESOURCES: tuple[str, ...] = ("users", "sessions", "custom_exercises", "reactions")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    sync_code TEXT NOT NULL,
    name TEXT NOT NULL,
    avatar TEXT NOT NULL DEFAULT '',
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS users_sync_code_idx ON users (sync_code);

CREATE TABLE IF NOT EXISTS sessions (
    id TEXT PRIMARY KEY,
    sync_code TEXT NOT NULL,
    created_by TEXT NOT NULL,
    creator_name TEXT NOT NULL,
    creator_avatar TEXT NOT NULL DEFAULT '',
    date DATE NOT NULL,
    type TEXT NOT NULL,
    participants JSONB NOT NULL DEFAULT '[]'::jsonb,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS sessions_sync_code_date_idx ON sessions (sync_code, date DESC);

CREATE TABLE IF NOT EXISTS custom_exercises (
    sync_code TEXT NOT NULL,
    body_part TEXT NOT NULL,
    exercise_name TEXT NOT NULL,
    PRIMARY KEY (sync_code, body_part, exercise_name)
);

CREATE TABLE IF NOT EXISTS reactions (
    id TEXT PRIMARY KEY,
    session_id TEXT NOT NULL,
    sync_code TEXT NOT NULL,
    user_id TEXT NOT NULL,
    user_name TEXT NOT NULL,
    user_avatar TEXT NOT NULL DEFAULT '',
    category TEXT NOT NULL,
    emoji TEXT NOT NULL,
    gif_url TEXT NOT NULL,
    gif_id TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS reactions_session_idx ON reactions (session_id, created_at);

CREATE OR REPLACE FUNCTION gymsync_notify_change() RETURNS trigger AS $$
DECLARE
    row_sync_code TEXT;
BEGIN
    IF TG_OP = 'DELETE' THEN
        row_sync_code := OLD.sync_code;
    ELSE
        row_sync_code := NEW.sync_code;
    END IF;
    PERFORM pg_notify('gymsync.' || TG_TABLE_NAME || '.' || left(md5(row_sync_code), 16), TG_OP);
    RETURN NULL;
END;
$$ LANGUAGE plpgsql;
"""

_TRIGGER_SQL = sql.SQL(
    """
DROP TRIGGER IF EXISTS {trigger} ON {table};
CREATE TRIGGER {trigger}
    AFTER INSERT OR UPDATE OR DELETE ON {table}
    FOR EACH ROW EXECUTE FUNCTION gymsync_notify_change();
"""
)


def change_channel(resource: str, sync_code: str) -> str:
    """NOTIFY channel for one resource within one sync group.

    The sync code is hashed so the name stays under PostgreSQL's 63-byte
    identifier limit. Must match gymsync_notify_change().
    """
    digest = hashlib.md5(sync_code.encode("utf-8")).hexdigest()[:16]
    return f"gymsync.{resource}.{digest}"


async def ensure_schema(conn: psycopg.AsyncConnection[Any]) -> None:
    """Create tables and change-notification triggers if missing."""
    await conn.execute(SCHEMA_SQL)
    for table in RESOURCES:
        await conn.execute(
            _TRIGGER_SQL.format(
                table=sql.Identifier(table),
                trigger=sql.Identifier(f"{table}_notify"),
            )
        )
    logger.info("Schema ensured for %s", ", ".join(RESOURCES))


class RecordStore:
    def __init__(self, conn: psycopg.AsyncConnection[Any]) -> None:
        self.conn = conn

    @classmethod
    @asynccontextmanager
    async def connect(cls, database_url: str) -> AsyncIterator["RecordStore"]:
        try:
            conn = await psycopg.AsyncConnection.connect(database_url, autocommit=True)
        except psycopg.Error as exc:
            raise BackendError("connect", str(exc)) from exc
        async with conn:
            yield cls(conn)

    async def _fetch(self, operation: str, query: str, params: tuple[Any, ...]) -> list[dict[str, Any]]:
        try:
            async with self.conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(query, params)
                return await cur.fetchall()
        except psycopg.Error as exc:
            logger.warning("%s failed: %s", operation, exc)
            raise BackendError(operation, str(exc)) from exc

    def _validate_rows(self, operation: str, model: type[M], rows: list[dict[str, Any]]) -> list[M]:
        # Rows written by other devices may not pass validation; skip them.
        valid: list[M] = []
        for row in rows:
            try:
                valid.append(model.model_validate(row))
            except pydantic.ValidationError as exc:
                logger.warning(
                    "%s: skipping malformed row %s: %s",
                    operation,
                    row.get("id"),
                    exc,
                    extra={"gymsync_row_id": row.get("id")},
                )
        return valid

    async def _write(self, operation: str, query: str, params: tuple[Any, ...]) -> int:
        try:
            async with self.conn.cursor() as cur:
                await cur.execute(query, params)
                return cur.rowcount
        except psycopg.Error as exc:
            logger.warning("%s failed: %s", operation, exc)
            raise BackendError(operation, str(exc)) from exc

    # --- users ------------------------------------------------------------

    async def fetch_users(self, sync_code: str) -> list[User]:
        rows = await self._fetch(
            "fetch_users",
            """
            SELECT id, name, avatar, created_at
            FROM users
            WHERE sync_code = %s
            ORDER BY created_at ASC
            """,
            (sync_code,),
        )
        return self._validate_rows("fetch_users", User, rows)

    async def insert_user(self, sync_code: str, user: User) -> None:
        await self._write(
            "insert_user",
            """
            INSERT INTO users (id, sync_code, name, avatar, created_at)
            VALUES (%s, %s, %s, %s, %s)
            """,
            (user.id, sync_code, user.name, user.avatar, user.created_at),
        )

    async def update_user(self, sync_code: str, user: User) -> None:
        await self._write(
            "update_user",
            "UPDATE users SET name = %s, avatar = %s WHERE id = %s AND sync_code = %s",
            (user.name, user.avatar, user.id, sync_code),
        )

    async def delete_user(self, sync_code: str, user_id: str) -> None:
        await self._write(
            "delete_user",
            "DELETE FROM users WHERE id = %s AND sync_code = %s",
            (user_id, sync_code),
        )

    # --- sessions ---------------------------------------------------------

    async def fetch_sessions(self, sync_code: str) -> list[Session]:
        rows = await self._fetch(
            "fetch_sessions",
            """
            SELECT id, sync_code, created_by, creator_name, creator_avatar,
                   date, type, participants, created_at
            FROM sessions
            WHERE sync_code = %s
            ORDER BY date DESC, created_at DESC
            """,
            (sync_code,),
        )
        return self._validate_rows("fetch_sessions", Session, rows)

    async def insert_session(self, session: Session) -> None:
        participants = [p.model_dump(mode="json") for p in session.participants]
        await self._write(
            "insert_session",
            """
            INSERT INTO sessions (
                id, sync_code, created_by, creator_name, creator_avatar,
                date, type, participants, created_at
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                session.id,
                session.sync_code,
                session.created_by,
                session.creator_name,
                session.creator_avatar,
                session.date,
                session.type,
                Jsonb(participants),
                session.created_at,
            ),
        )
        logger.info(
            "Session %s saved (%d participants)",
            session.id,
            len(participants),
            extra={"gymsync_sync_code": session.sync_code, "gymsync_session_id": session.id},
        )

    async def delete_session(self, sync_code: str, session_id: str) -> None:
        await self._write(
            "delete_session",
            "DELETE FROM sessions WHERE id = %s AND sync_code = %s",
            (session_id, sync_code),
        )

    # --- custom exercises -------------------------------------------------

    async def fetch_custom_exercises(self, sync_code: str) -> CustomExerciseRegistry:
        rows = await self._fetch(
            "fetch_custom_exercises",
            """
            SELECT body_part, exercise_name
            FROM custom_exercises
            WHERE sync_code = %s
            """,
            (sync_code,),
        )
        registry: CustomExerciseRegistry = {}
        for row in rows:
            names = registry.setdefault(row["body_part"], [])
            if row["exercise_name"] not in names:
                names.append(row["exercise_name"])
        return registry

    async def insert_custom_exercise(self, sync_code: str, body_part: str, exercise_name: str) -> None:
        await self._write(
            "insert_custom_exercise",
            """
            INSERT INTO custom_exercises (sync_code, body_part, exercise_name)
            VALUES (%s, %s, %s)
            ON CONFLICT DO NOTHING
            """,
            (sync_code, body_part, exercise_name),
        )

    # --- reactions --------------------------------------------------------

    async def fetch_reactions(self, sync_code: str, session_id: str) -> list[Reaction]:
        rows = await self._fetch(
            "fetch_reactions",
            """
            SELECT id, session_id, user_id, user_name, user_avatar,
                   category, emoji, gif_url, gif_id, created_at
            FROM reactions
            WHERE sync_code = %s AND session_id = %s
            ORDER BY created_at ASC
            """,
            (sync_code, session_id),
        )
        return self._validate_rows("fetch_reactions", Reaction, rows)

    async def fetch_reactions_by_session(self, sync_code: str) -> dict[str, list[Reaction]]:
        rows = await self._fetch(
            "fetch_reactions_by_session",
            """
            SELECT id, session_id, user_id, user_name, user_avatar,
                   category, emoji, gif_url, gif_id, created_at
            FROM reactions
            WHERE sync_code = %s
            ORDER BY created_at ASC
            """,
            (sync_code,),
        )
        grouped: dict[str, list[Reaction]] = {}
        for reaction in self._validate_rows("fetch_reactions_by_session", Reaction, rows):
            grouped.setdefault(reaction.session_id, []).append(reaction)
        return grouped

    async def insert_reaction(self, sync_code: str, reaction: Reaction) -> None:
        await self._write(
            "insert_reaction",
            """
            INSERT INTO reactions (
                id, session_id, sync_code, user_id, user_name, user_avatar,
                category, emoji, gif_url, gif_id, created_at
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                reaction.id,
                reaction.session_id,
                sync_code,
                reaction.user_id,
                reaction.user_name,
                reaction.user_avatar,
                reaction.category,
                reaction.emoji,
                reaction.gif_url,
                reaction.gif_id,
                reaction.created_at,
            ),
        )
