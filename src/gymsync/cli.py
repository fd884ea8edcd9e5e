"""CLI interface for GymSync."""

from __future__ import annotations

import asyncio
import re
import sys
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import click

from .achievements import achievements, current_streak
from .aggregation import (
    DEFAULT_PROGRESS_LIMIT,
    comparison_series,
    exercise_progress,
    gym_days_in_window,
    leaderboard,
    personal_records,
    sessions_this_month,
    top_exercises,
    total_sessions,
)
from .catalog import AVATAR_PLACEHOLDERS, BODY_PARTS, available_exercises
from .classification import body_part_heat_map, exercise_balance
from .config import Config
from .errors import GymSyncError
from .gifs import GiphyCatalog
from .logging import LOG_FORMATS, setup_logging
from .models import Session
from .profile_state import ProfileState
from .reactions import SUGGESTED_SEARCHES
from .realtime import ListenTransport, PollingTransport
from .service import GymSync
from .store import RecordStore, ensure_schema

T = TypeVar("T")

SET_SPEC = re.compile(r"^(?:(?P<user>[^@]+)@)?(?P<exercise>[^=]+)=(?P<weight>\d+(?:\.\d+)?)x(?P<reps>\d+)$")


def _state(config: Config) -> ProfileState:
    return ProfileState(config.state_path, default_sync_code=config.default_sync_code)


@asynccontextmanager
async def open_store(config: Config) -> AsyncIterator[RecordStore]:
    async with RecordStore.connect(config.require_database_url()) as store:
        yield store


@asynccontextmanager
async def open_app(config: Config) -> AsyncIterator[GymSync]:
    """Connect the record store and GIF catalog for one command."""
    async with open_store(config) as store:
        async with GiphyCatalog(config.giphy_api_key, base_url=config.giphy_api_url) as catalog:
            yield GymSync(store, _state(config), catalog)


def _run(coro: Awaitable[T]) -> T:
    try:
        return asyncio.run(coro)  # type: ignore[arg-type]
    except (GymSyncError, RuntimeError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _resolve_user(app: GymSync, user_id: str | None) -> str:
    return user_id or app.context().user_id


def _find_session(sessions: list[Session], session_id: str) -> Session:
    for session in sessions:
        if session.id == session_id or session.id.startswith(session_id):
            return session
    raise GymSyncError(f"Unknown session {session_id}")


@click.group()
@click.option("--log-level", default="WARNING", show_default=True, help="Root log level.")
@click.option(
    "--log-format",
    type=click.Choice(LOG_FORMATS),
    default=None,
    help="Override GYMSYNC_LOG_FORMAT.",
)
@click.pass_context
def main(ctx: click.Context, log_level: str, log_format: str | None):
    """Log gym sessions and share them with your group."""
    config = Config.from_env()
    try:
        setup_logging(log_format or config.log_format, level=log_level.upper())
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    ctx.obj = config


# ---------------------------------------------------------------------------
# profiles
# ---------------------------------------------------------------------------


@main.group()
def profiles():
    """Manage the people in this sync group."""


@profiles.command("list")
@click.pass_obj
def list_profiles(config: Config):
    """List profiles in the active sync group."""

    async def run():
        async with open_app(config) as app:
            users = await app.refresh_users()
            current = app.state.current_user
            if not users:
                click.echo("No profiles yet. Create one with 'gymsync profiles create NAME'.")
            for user in users:
                marker = "*" if current and current.id == user.id else " "
                click.echo(f"{marker} {user.id}  {user.name}  {user.display_avatar}")

    _run(run())


@profiles.command("create")
@click.argument("name")
@click.option("--avatar", default=None, help="Avatar image path or URL (see 'gymsync profiles avatars').")
@click.option("--no-select", is_flag=True, help="Do not switch to the new profile.")
@click.pass_obj
def create_profile(config: Config, name: str, avatar: str | None, no_select: bool):
    """Create a profile and make it active."""

    async def run():
        async with open_app(config) as app:
            kwargs: dict[str, Any] = {"select": not no_select}
            if avatar:
                kwargs["avatar"] = avatar
            user = await app.create_profile(name, **kwargs)
            click.echo(f"Created {user.name} ({user.id})")

    _run(run())


@profiles.command("avatars")
def list_avatars():
    """Built-in avatar images to pass as --avatar."""
    for path in AVATAR_PLACEHOLDERS:
        click.echo(path)


@profiles.command("select")
@click.argument("user_id")
@click.pass_obj
def select_profile(config: Config, user_id: str):
    """Act as USER_ID on this device."""

    async def run():
        async with open_app(config) as app:
            await app.refresh_users()
            user = app.select_profile(user_id)
            click.echo(f"Now acting as {user.name}")

    _run(run())


@profiles.command("edit")
@click.argument("user_id")
@click.option("--name", default=None)
@click.option("--avatar", default=None)
@click.pass_obj
def edit_profile(config: Config, user_id: str, name: str | None, avatar: str | None):
    """Rename a profile or change its avatar."""
    if name is None and avatar is None:
        click.echo("Error: Specify --name and/or --avatar.", err=True)
        sys.exit(1)

    async def run():
        async with open_app(config) as app:
            user = await app.edit_profile(user_id, name=name, avatar=avatar)
            click.echo(f"Updated {user.name} ({user.id})")

    _run(run())


@profiles.command("delete")
@click.argument("user_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def delete_profile(config: Config, user_id: str, yes: bool):
    """Delete a profile (logged sessions are kept)."""

    async def run():
        async with open_app(config) as app:
            await app.delete_profile(user_id, confirm=lambda prompt: yes or click.confirm(prompt))
            click.echo(f"Deleted {user_id}")

    _run(run())


@main.command("sync-code")
@click.argument("code", required=False)
@click.pass_obj
def sync_code(config: Config, code: str | None):
    """Show or change the sync code shared by your group."""
    state = _state(config)
    if code is None:
        click.echo(state.sync_code)
        return
    try:
        state.set_sync_code(code)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Sync code set to {state.sync_code}")


@main.command("init-db")
@click.pass_obj
def init_db(config: Config):
    """Create tables and change-notification triggers."""

    async def run():
        async with open_store(config) as store:
            await ensure_schema(store.conn)
        click.echo("Database ready.")

    _run(run())


# ---------------------------------------------------------------------------
# sessions
# ---------------------------------------------------------------------------


@main.group()
def sessions():
    """Log, list and delete sessions."""


def _echo_session(session: Session) -> None:
    click.echo(f"{session.date.isoformat()}  {session.type:<10} {session.id}  by {session.creator_name}")
    for participant in session.participants:
        click.echo(f"  {participant.user_name or '(unnamed)'}")
        for exercise in participant.exercises:
            sets = ", ".join(f"{s.weight:g}x{s.reps}" for s in exercise.sets)
            click.echo(f"    {exercise.exercise_name}: {sets}")
        if participant.notes:
            click.echo(f"    Notes: {participant.notes}")
    if session.reactions:
        click.echo("  Reactions: " + " ".join(f"{r.emoji} {r.user_name}" for r in session.reactions))


@sessions.command("list")
@click.option("--limit", type=int, default=10, show_default=True)
@click.option("--mine", is_flag=True, help="Only sessions the active profile took part in.")
@click.pass_obj
def list_sessions(config: Config, limit: int, mine: bool):
    """Show the most recent sessions, newest first."""

    async def run():
        async with open_app(config) as app:
            items = await app.list_sessions(with_reactions=True)
            if mine:
                user_id = app.context().user_id
                items = [s for s in items if s.has_participant(user_id)]
            for session in items[:limit]:
                _echo_session(session)

    _run(run())


@sessions.command("log")
@click.option("--date", "session_date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--body-part", type=click.Choice(BODY_PARTS), required=True)
@click.option("--exercise", "exercises", multiple=True, help="Exercise name (repeatable).")
@click.option("--with", "partners", multiple=True, help="Add another profile by id (repeatable).")
@click.option(
    "--set", "set_specs", multiple=True,
    help="[USER_ID@]EXERCISE=WEIGHTxREPS, e.g. 'Bench Press=100x5' (repeatable).",
)
@click.option("--notes", default=None, help="Notes for the active profile.")
@click.pass_obj
def log_session(
    config: Config,
    session_date,
    body_part: str,
    exercises: tuple[str, ...],
    partners: tuple[str, ...],
    set_specs: tuple[str, ...],
    notes: str | None,
):
    """Log a session for yourself and any training partners."""
    parsed = []
    for spec in set_specs:
        match = SET_SPEC.match(spec.strip())
        if match is None:
            click.echo(f"Error: Cannot parse --set {spec!r}.", err=True)
            sys.exit(1)
        parsed.append(match)

    async def run():
        async with open_app(config) as app:
            editor = app.new_editor(today=session_date.date() if session_date else None)
            editor.body_part = body_part

            roster = {u.id: u for u in await app.refresh_users()}
            participant_index = {app.context().user_id: 0}
            for partner_id in partners:
                if partner_id not in roster:
                    raise GymSyncError(f"Unknown profile {partner_id}")
                editor.add_participant()
                idx = len(editor.participants) - 1
                editor.select_user_for_participant(idx, roster[partner_id])
                participant_index[partner_id] = idx

            names = list(exercises) + [m["exercise"].strip() for m in parsed]
            for name in dict.fromkeys(n.strip() for n in names):
                editor.add_exercise_to_session(name)

            # The first set of each blank exercise is filled before new ones are added.
            filled: dict[tuple[int, int], int] = {}
            for match in parsed:
                user_id = match["user"] or app.context().user_id
                if user_id not in participant_index:
                    raise GymSyncError(f"{user_id} is not part of this session; add --with {user_id}")
                p_idx = participant_index[user_id]
                e_idx = editor.shared_exercise_names.index(match["exercise"].strip())
                s_idx = filled.get((p_idx, e_idx), 0)
                if s_idx > 0:
                    editor.add_set(p_idx, e_idx)
                editor.update_set(p_idx, e_idx, s_idx, weight=float(match["weight"]), reps=int(match["reps"]))
                filled[(p_idx, e_idx)] = s_idx + 1

            if notes:
                editor.set_notes(0, notes)
            session = await app.save_session(editor)
            click.echo(f"Saved {session.type} session {session.id} on {session.date.isoformat()}")

    _run(run())


@sessions.command("delete")
@click.argument("session_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def delete_session(config: Config, session_id: str, yes: bool):
    """Delete a session you logged."""

    async def run():
        async with open_app(config) as app:
            session = _find_session(await app.list_sessions(), session_id)
            await app.delete_session(session, confirm=lambda prompt: yes or click.confirm(prompt))
            click.echo(f"Deleted session {session.id}")

    _run(run())


# ---------------------------------------------------------------------------
# exercises
# ---------------------------------------------------------------------------


@main.group()
def exercises():
    """Browse the exercise catalog and add custom exercises."""


@exercises.command("list")
@click.argument("body_part", type=click.Choice(BODY_PARTS))
@click.pass_obj
def list_exercises(config: Config, body_part: str):
    """Exercises available for BODY_PART, custom ones included."""

    async def run():
        async with open_app(config) as app:
            custom = await app.refresh_custom_exercises()
            for name in available_exercises(body_part, custom):
                click.echo(name)

    _run(run())


@exercises.command("add")
@click.argument("body_part", type=click.Choice(BODY_PARTS))
@click.argument("name")
@click.pass_obj
def add_exercise(config: Config, body_part: str, name: str):
    """Register a custom exercise for the whole group."""

    async def run():
        async with open_app(config) as app:
            await app.refresh_custom_exercises()
            if await app.add_custom_exercise(body_part, name):
                click.echo(f"Added {name.strip()} to {body_part}")
            else:
                click.echo(f"{name.strip()} already exists for {body_part}")

    _run(run())


# ---------------------------------------------------------------------------
# stats
# ---------------------------------------------------------------------------


@main.group()
def stats():
    """Progress, leaderboards and achievements."""


user_option = click.option("--user", "user_id", default=None, help="Profile id (defaults to the active one).")


async def _sessions_for(app: GymSync, user_id: str | None) -> tuple[list[Session], str]:
    items = await app.list_sessions()
    return items, _resolve_user(app, user_id)


@stats.command("summary")
@user_option
@click.pass_obj
def stats_summary(config: Config, user_id: str | None):
    """Totals, streak and favourite exercises."""

    async def run():
        async with open_app(config) as app:
            items, uid = await _sessions_for(app, user_id)
            click.echo(f"Total sessions:     {total_sessions(items, uid)}")
            click.echo(f"This month:         {sessions_this_month(items, uid)}")
            click.echo(f"Gym days (30 days): {gym_days_in_window(items, uid)}")
            click.echo(f"Current streak:     {current_streak(items, uid)} days")
            top = top_exercises(items, uid)
            if top:
                click.echo("Top exercises:")
                for name, count in top:
                    click.echo(f"  {name}: {count}")

    _run(run())


@stats.command("progress")
@click.argument("exercise")
@click.option("--all-time", is_flag=True, help="Show every session instead of the latest --limit.")
@click.option("--limit", type=click.IntRange(min=1), default=DEFAULT_PROGRESS_LIMIT, show_default=True)
@user_option
@click.pass_obj
def stats_progress(config: Config, exercise: str, all_time: bool, limit: int, user_id: str | None):
    """Max weight and volume per session for EXERCISE."""

    async def run():
        async with open_app(config) as app:
            items, uid = await _sessions_for(app, user_id)
            points = exercise_progress(items, uid, exercise, all_time=all_time, limit=limit)
            if not points:
                click.echo(f"No {exercise} logged yet.")
            for point in points:
                click.echo(
                    f"{point.date.isoformat()}  max {point.max_weight:g} kg  volume {point.total_volume:g} kg"
                )

    _run(run())


@stats.command("leaderboard")
@click.argument("exercise")
@click.pass_obj
def stats_leaderboard(config: Config, exercise: str):
    """Best single set of EXERCISE per person."""

    async def run():
        async with open_app(config) as app:
            entries = leaderboard(await app.list_sessions(), exercise)
            for rank, entry in enumerate(entries, start=1):
                click.echo(f"{rank:>2}. {entry.user_name:<20} {entry.max_weight:g} kg  ({entry.date.isoformat()})")

    _run(run())


@stats.command("records")
@user_option
@click.pass_obj
def stats_records(config: Config, user_id: str | None):
    """Personal records per exercise."""

    async def run():
        async with open_app(config) as app:
            items, uid = await _sessions_for(app, user_id)
            for record in personal_records(items, uid):
                click.echo(f"{record.exercise_name:<30} {record.weight:g} kg  ({record.date.isoformat()})")

    _run(run())


@stats.command("balance")
@user_option
@click.pass_obj
def stats_balance(config: Config, user_id: str | None):
    """Push / Pull / Legs / Other split."""

    async def run():
        async with open_app(config) as app:
            items, uid = await _sessions_for(app, user_id)
            for bucket, pct in exercise_balance(items, uid).items():
                click.echo(f"{bucket:<5} {pct:>3}%")

    _run(run())


@stats.command("heatmap")
@click.option("--days", type=int, default=7, show_default=True)
@user_option
@click.pass_obj
def stats_heatmap(config: Config, days: int, user_id: str | None):
    """Body parts trained in the last DAYS days."""

    async def run():
        async with open_app(config) as app:
            items, uid = await _sessions_for(app, user_id)
            for part, cell in body_part_heat_map(items, uid, window_days=days).items():
                bar = "#" * round(cell.intensity * 10)
                click.echo(f"{part:<10} {cell.count:>3} {bar}")

    _run(run())


@stats.command("achievements")
@user_option
@click.pass_obj
def stats_achievements(config: Config, user_id: str | None):
    """Badges earned so far."""

    async def run():
        async with open_app(config) as app:
            items, uid = await _sessions_for(app, user_id)
            earned = achievements(items, uid)
            if not earned:
                click.echo("No badges yet.")
            for badge in earned:
                click.echo(f"{badge.emoji} {badge.title}: {badge.description}")

    _run(run())


@stats.command("compare")
@click.argument("exercise")
@click.argument("user_ids", nargs=-1, required=True)
@click.pass_obj
def stats_compare(config: Config, exercise: str, user_ids: tuple[str, ...]):
    """Max weight over time for EXERCISE, side by side."""

    async def run():
        async with open_app(config) as app:
            names = {u.id: u.name for u in await app.refresh_users()}
            series = comparison_series(await app.list_sessions(), exercise, list(user_ids))
            for uid, points in series.items():
                click.echo(f"{names.get(uid, uid)}:")
                for point in points:
                    click.echo(f"  {point.date.isoformat()}  {point.max_weight:g} kg")

    _run(run())


# ---------------------------------------------------------------------------
# reactions and GIFs
# ---------------------------------------------------------------------------


@main.command()
@click.argument("session_id")
@click.option("--category", default=None, help="Fire, Strong, Celebration, Mind Blown or Funny.")
@click.option("--search", "term", default=None, help="Free-text GIF search.")
@click.option("--trending", is_flag=True, help="Pick from trending GIFs.")
@click.option("--pick", type=int, default=1, show_default=True, help="Which GIF (1-based).")
@click.pass_obj
def react(config: Config, session_id: str, category: str | None, term: str | None, trending: bool, pick: int):
    """React to a session with a GIF."""
    if sum(bool(x) for x in (category, term, trending)) != 1:
        click.echo("Error: Specify exactly one of --category, --search or --trending.", err=True)
        sys.exit(1)

    async def run():
        async with open_app(config) as app:
            session = _find_session(await app.list_sessions(with_reactions=True), session_id)
            picker = app.picker()
            if category:
                gifs = await picker.select_category(category)
            elif term:
                gifs = await picker.search(term)
            else:
                gifs = await picker.trending()
            if not 1 <= pick <= len(gifs):
                raise GymSyncError(f"No GIF #{pick} ({len(gifs)} found)")
            reaction = await app.react(session, picker.choose(gifs[pick - 1]))
            click.echo(f"{reaction.emoji} {reaction.category} added to {session.id}")

    _run(run())


@main.group()
def gifs():
    """Browse the GIF catalog."""


async def _print_gifs(config: Config, term: str | None) -> None:
    async with GiphyCatalog(config.giphy_api_key, base_url=config.giphy_api_url) as catalog:
        found = await catalog.search(term) if term is not None else await catalog.trending()
    if not found:
        click.echo("No GIFs found. Try: " + ", ".join(SUGGESTED_SEARCHES))
    for idx, gif in enumerate(found, start=1):
        click.echo(f"{idx:>2}. {gif.title}  {gif.url}")


@gifs.command("search")
@click.argument("term")
@click.pass_obj
def gifs_search(config: Config, term: str):
    """Search GIFs (family-friendly only)."""
    _run(_print_gifs(config, term))


@gifs.command("suggestions")
def gifs_suggestions():
    """Search terms that work well for reactions."""
    for term in SUGGESTED_SEARCHES:
        click.echo(term)


@gifs.command("trending")
@click.pass_obj
def gifs_trending(config: Config):
    """List trending GIFs."""
    _run(_print_gifs(config, None))


# ---------------------------------------------------------------------------
# watch
# ---------------------------------------------------------------------------


@main.command()
@click.option("--poll", is_flag=True, help="Poll instead of using LISTEN/NOTIFY.")
@click.option("--duration", type=float, default=None, help="Stop after this many seconds.")
@click.pass_obj
def watch(config: Config, poll: bool, duration: float | None):
    """Print sessions as the group logs them."""

    def on_change(items: list[Session]) -> None:
        latest = items[0] if items else None
        summary = f", latest {latest.date.isoformat()} {latest.type} by {latest.creator_name}" if latest else ""
        click.echo(f"{len(items)} sessions{summary}")

    async def run():
        async with open_app(config) as app:
            transport = (
                PollingTransport(config.poll_interval_seconds)
                if poll
                else ListenTransport(config.require_database_url())
            )
            live = app.watch_sessions(
                transport,
                subscribe_delay_seconds=config.subscribe_delay_seconds,
                on_change=on_change,
            )
            await live.mount()
            try:
                if duration is None:
                    await asyncio.Event().wait()
                else:
                    await asyncio.sleep(duration)
            finally:
                await live.unmount()

    try:
        _run(run())
    except KeyboardInterrupt:
        click.echo("Stopped.")


if __name__ == "__main__":
    main()
