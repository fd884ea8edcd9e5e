"""Social reactions (emoji + GIF) on sessions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .gifs import DEFAULT_LIMIT, Gif
from .models import Reaction, Session, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReactionCategory:
    label: str
    emoji: str
    query: str


REACTION_CATEGORIES: tuple[ReactionCategory, ...] = (
    ReactionCategory("Fire", "🔥", "fire"),
    ReactionCategory("Strong", "💪", "strong"),
    ReactionCategory("Celebration", "🎉", "celebration"),
    ReactionCategory("Mind Blown", "🤯", "mind blown"),
    ReactionCategory("Funny", "😂", "funny"),
)

SUGGESTED_SEARCHES: tuple[str, ...] = (
    "fire",
    "strong",
    "celebration",
    "clapping",
    "wow",
    "beast mode",
    "mind blown",
    "fail",
    "nice",
    "funny",
    "impressive",
    "flex",
    "workout",
    "victory",
)

SEARCH_EMOJI = "🔍"


@dataclass(frozen=True)
class ReactionPayload:
    category: str
    emoji: str
    gif_url: str
    gif_id: str


class GifSource(Protocol):
    async def search(self, query: str, limit: int = DEFAULT_LIMIT) -> list[Gif]: ...

    async def trending(self, limit: int = DEFAULT_LIMIT) -> list[Gif]: ...


class ReactionWriter(Protocol):
    async def insert_reaction(self, sync_code: str, reaction: Reaction) -> None: ...


def find_category(label: str) -> ReactionCategory | None:
    wanted = label.strip().lower()
    for category in REACTION_CATEGORIES:
        if category.label.lower() == wanted or category.query == wanted:
            return category
    return None


class ReactionPicker:
    """Pick a category or free-text term, load GIFs, choose one."""

    def __init__(self, catalog: GifSource, *, limit: int = DEFAULT_LIMIT) -> None:
        self.catalog = catalog
        self.limit = limit
        self.label: str | None = None
        self.emoji: str | None = None
        self.gifs: list[Gif] = []

    async def select_category(self, label: str) -> list[Gif]:
        category = find_category(label)
        if category is None:
            raise ValueError(f"Unknown reaction category {label!r}")
        self.label, self.emoji = category.label, category.emoji
        self.gifs = await self.catalog.search(category.query, self.limit)
        return self.gifs

    async def search(self, term: str) -> list[Gif]:
        self.label, self.emoji = term.strip(), SEARCH_EMOJI
        self.gifs = await self.catalog.search(term, self.limit)
        return self.gifs

    async def trending(self) -> list[Gif]:
        self.label, self.emoji = "Trending", SEARCH_EMOJI
        self.gifs = await self.catalog.trending(self.limit)
        return self.gifs

    def back(self) -> None:
        self.label = self.emoji = None
        self.gifs = []

    def choose(self, gif: Gif) -> ReactionPayload:
        if self.label is None or self.emoji is None:
            raise ValueError("Select a category or search term first")
        payload = ReactionPayload(
            category=self.label, emoji=self.emoji, gif_url=gif.url, gif_id=gif.id
        )
        self.back()
        return payload


async def attach_reaction(
    store: ReactionWriter,
    session: Session,
    reactor: User,
    payload: ReactionPayload,
) -> Reaction:
    """Persist a reaction and, once the write succeeded, show it on ``session``."""
    reaction = Reaction(
        session_id=session.id,
        user_id=reactor.id,
        user_name=reactor.name,
        user_avatar=reactor.avatar,
        category=payload.category,
        emoji=payload.emoji,
        gif_url=payload.gif_url,
        gif_id=payload.gif_id,
    )
    await store.insert_reaction(session.sync_code, reaction)
    session.reactions.append(reaction)
    logger.info(
        "%s reacted %s to session %s",
        reactor.name,
        payload.emoji,
        session.id,
        extra={"gymsync_session_id": session.id},
    )
    return reaction
