# services/matching.py
"""
Поиск взаимных лайков и создание матча ровно один раз.

Матч идентифицируется канонической парой (меньший id, больший id).
Все, кто читает или пишет матч, проходят через canonicalize(), поэтому
(A, B) и (B, A) всегда попадают в одну и ту же строку таблицы matches.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import Internal, InvalidArgument
from models.like import InteractionStatus, Like
from models.match import Match
from models.profile import Profile
from models.user import User
from schemas.events import NEW_MATCH, MatchedUser, NewMatchEvent
from services.notifier import Notifier

logger = logging.getLogger(__name__)


def canonicalize(user_a: int, user_b: int) -> Tuple[int, int]:
    if user_a == user_b:
        raise InvalidArgument("A match needs two distinct users")
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


@dataclass(frozen=True)
class Created:
    match: Match


@dataclass(frozen=True)
class AlreadyExists:
    match: Match


MatchCreation = Union[Created, AlreadyExists]


@dataclass(frozen=True)
class MatchDetection:
    created: bool
    match: Optional[Match] = None


async def find_match(db: AsyncSession, user_a: int, user_b: int) -> Optional[Match]:
    user1_id, user2_id = canonicalize(user_a, user_b)
    result = await db.execute(
        select(Match).where(Match.user1_id == user1_id, Match.user2_id == user2_id)
    )
    return result.scalar_one_or_none()


async def insert_match(db: AsyncSession, user_a: int, user_b: int) -> MatchCreation:
    """
    Вставка матча по принципу insert-if-absent. Уникальный индекс на
    канонической паре решает, кто победил; проигравший получает уже
    существующую строку, а не ошибку.
    """
    user1_id, user2_id = canonicalize(user_a, user_b)
    match = Match(user1_id=user1_id, user2_id=user2_id)
    db.add(match)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        existing = await find_match(db, user1_id, user2_id)
        if existing is None:
            # нарушено другое ограничение, не уникальность пары
            logger.error("Match %s↔%s rejected by storage", user1_id, user2_id)
            raise Internal("Failed to create match")
        logger.info("Match %s↔%s was created concurrently, reusing %s", user1_id, user2_id, existing.id)
        return AlreadyExists(existing)

    await db.refresh(match)
    return Created(match)


async def get_or_create_match(db: AsyncSession, user_a: int, user_b: int) -> MatchCreation:
    existing = await find_match(db, user_a, user_b)
    if existing is not None:
        return AlreadyExists(existing)
    return await insert_match(db, user_a, user_b)


async def has_mirror_like(db: AsyncSession, liker_id: int, liked_id: int) -> bool:
    result = await db.execute(
        select(Like.id).where(
            Like.liker_id == liked_id,
            Like.liked_id == liker_id,
            Like.status == InteractionStatus.liked,
        )
    )
    return result.scalar_one_or_none() is not None


async def on_liked(
    db: AsyncSession,
    liker_id: int,
    liked_id: int,
    notifier: Optional[Notifier] = None,
) -> MatchDetection:
    """
    Вызывается после успешной записи лайка liker → liked.

    Если встречный лайк есть, создаёт матч (или находит уже созданный
    параллельным запросом). Уведомления newMatch уходят только тому
    вызову, который действительно создал матч.
    """
    if not await has_mirror_like(db, liker_id, liked_id):
        return MatchDetection(created=False)

    outcome = await get_or_create_match(db, liker_id, liked_id)
    if isinstance(outcome, AlreadyExists):
        return MatchDetection(created=False, match=outcome.match)

    match = outcome.match
    logger.info("New match %s between %s and %s", match.id, match.user1_id, match.user2_id)
    if notifier is not None:
        await announce_match(db, match, notifier)
    return MatchDetection(created=True, match=match)


async def _matched_user(db: AsyncSession, user_id: int) -> MatchedUser:
    profile = (
        await db.execute(select(Profile).where(Profile.user_id == user_id))
    ).scalar_one_or_none()
    if profile is not None and profile.name:
        return MatchedUser(id=user_id, display_name=profile.name, picture_ref=profile.profile_picture or None)

    username = (await db.execute(select(User.username).where(User.id == user_id))).scalar_one_or_none()
    return MatchedUser(id=user_id, display_name=username or "A user")


async def announce_match(db: AsyncSession, match: Match, notifier: Notifier) -> None:
    """Отправляет newMatch обоим участникам, каждому данные другого."""
    try:
        first = await _matched_user(db, match.user1_id)
        second = await _matched_user(db, match.user2_id)
    except SQLAlchemyError as exc:
        # матч уже сохранён, без уведомления он всё равно появится в списке
        logger.warning("Could not build newMatch payload for match %s: %s", match.id, exc)
        return

    for recipient, other in ((match.user1_id, second), (match.user2_id, first)):
        event = NewMatchEvent(
            match_id=match.id,
            other_user=other,
            message=f"You have a new match with {other.display_name}!",
        )
        notifier.notify(recipient, NEW_MATCH, event.model_dump(mode="json", by_alias=True))
