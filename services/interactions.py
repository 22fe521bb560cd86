# services/interactions.py
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import Conflict, Internal, InvalidArgument, NotFound
from models.like import InteractionStatus, Like
from models.user import User

logger = logging.getLogger(__name__)

ALREADY_INTERACTED = "You have already interacted with this profile."


async def find_interaction(db: AsyncSession, liker_id: int, liked_id: int) -> Like | None:
    result = await db.execute(
        select(Like).where(Like.liker_id == liker_id, Like.liked_id == liked_id)
    )
    return result.scalar_one_or_none()


async def record_interaction(
    db: AsyncSession,
    liker_id: int,
    liked_id: int,
    status: InteractionStatus,
) -> Like:
    """
    Записывает решение liker о liked. Решение окончательное: отменить или
    поменять его нельзя.

    Предварительная проверка отсекает очевидные повторы, а уникальный
    индекс (liker_id, liked_id) решает гонку двух одновременных запросов:
    проигравший получает тот же Conflict. Прочие нарушения целостности
    (например, коллизия id) дают Internal.
    """
    if liker_id == liked_id:
        raise InvalidArgument("You cannot like or dislike yourself.")

    if await db.get(User, liked_id) is None:
        raise NotFound("User not found")

    if await find_interaction(db, liker_id, liked_id) is not None:
        raise Conflict(ALREADY_INTERACTED)

    like = Like(liker_id=liker_id, liked_id=liked_id, status=InteractionStatus(status))
    db.add(like)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        if await find_interaction(db, liker_id, liked_id) is None:
            logger.exception("Interaction %s→%s was rejected by the database", liker_id, liked_id)
            raise Internal("Failed to record interaction")
        logger.info("Concurrent interaction %s→%s lost the race", liker_id, liked_id)
        raise Conflict(ALREADY_INTERACTED)

    await db.refresh(like)
    logger.debug("User %s %s user %s", liker_id, like.status.value, liked_id)
    return like
