# services/discovery.py
"""Выборки профилей для ленты, списков лайков и списка матчей."""
from typing import Iterable, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFound
from models.like import InteractionStatus, Like
from models.match import Match
from models.message import Message
from models.profile import Profile
from models.user import User
from schemas.match import MatchSummary, MatchUser
from schemas.profile import ProfileCard, ProfileRead
from services.conversation import to_message_read


def to_profile_card(profile: Profile, user: User) -> ProfileCard:
    return ProfileCard(
        **ProfileRead.model_validate(profile).model_dump(),
        username=user.username,
        email=user.email,
    )


async def _cards(db: AsyncSession, stmt) -> List[ProfileCard]:
    result = await db.execute(stmt)
    return [to_profile_card(profile, user) for profile, user in result.all()]


def _profiles_of(user_ids):
    return (
        select(Profile, User)
        .join(User, User.id == Profile.user_id)
        .where(Profile.user_id.in_(user_ids))
    )


async def get_profile_card(db: AsyncSession, user_id: int) -> Optional[ProfileCard]:
    cards = await _cards(db, _profiles_of([user_id]))
    return cards[0] if cards else None


async def random_profiles(db: AsyncSession, user_id: int, limit: int) -> List[ProfileCard]:
    """
    Случайные профили, о которых пользователь ещё не принимал решения.
    Бросает NotFound, если кандидатов не осталось.
    """
    decided = select(Like.liked_id).where(Like.liker_id == user_id)
    stmt = (
        select(Profile, User)
        .join(User, User.id == Profile.user_id)
        .where(
            Profile.user_id != user_id,
            Profile.user_id.not_in(decided),
        )
        .order_by(func.random())
        .limit(limit)
    )
    cards = await _cards(db, stmt)
    if not cards:
        raise NotFound("No more profiles found. Check back later!")
    return cards


async def liked_by(db: AsyncSession, user_id: int) -> List[ProfileCard]:
    """Профили, которые пользователь лайкнул."""
    liked = select(Like.liked_id).where(
        Like.liker_id == user_id,
        Like.status == InteractionStatus.liked,
    )
    return await _cards(db, _profiles_of(liked).order_by(Profile.created_at.desc()))


async def likers_of(db: AsyncSession, user_id: int) -> List[ProfileCard]:
    """
    Профили тех, кто лайкнул пользователя и о ком он сам ещё не решил.
    После ответного лайка или дизлайка человек пропадает из списка.
    """
    likers = select(Like.liker_id).where(
        Like.liked_id == user_id,
        Like.status == InteractionStatus.liked,
    )
    decided = select(Like.liked_id).where(Like.liker_id == user_id)
    stmt = _profiles_of(likers).where(Profile.user_id.not_in(decided))
    return await _cards(db, stmt.order_by(Profile.created_at.desc()))


async def _last_messages(db: AsyncSession, match_ids: Iterable[int]) -> dict:
    match_ids = list(match_ids)
    if not match_ids:
        return {}
    result = await db.execute(
        select(Message, User.username)
        .join(User, User.id == Message.sender_id)
        .where(Message.match_id.in_(match_ids))
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    last = {}
    for message, username in result.all():
        last[message.match_id] = to_message_read(message, username)
    return last


async def _unread_counts(db: AsyncSession, match_ids: Iterable[int], user_id: int) -> dict:
    match_ids = list(match_ids)
    if not match_ids:
        return {}
    result = await db.execute(
        select(Message.match_id, func.count(Message.id))
        .where(
            Message.match_id.in_(match_ids),
            Message.sender_id != user_id,
            Message.read.is_(False),
        )
        .group_by(Message.match_id)
    )
    return {match_id: count for match_id, count in result.all()}


async def list_matches(db: AsyncSession, user_id: int) -> List[MatchSummary]:
    """Матчи пользователя: собеседник, последнее сообщение, число непрочитанных."""
    result = await db.execute(
        select(Match)
        .where(or_(Match.user1_id == user_id, Match.user2_id == user_id))
        .order_by(Match.updated_at.desc(), Match.id.desc())
    )
    matches = result.scalars().all()
    if not matches:
        return []

    other_ids = [match.other_participant(user_id) for match in matches]
    users = {
        user.id: user
        for user in (await db.execute(select(User).where(User.id.in_(other_ids)))).scalars().all()
    }
    profiles = {
        profile.user_id: profile
        for profile in (
            await db.execute(select(Profile).where(Profile.user_id.in_(other_ids)))
        ).scalars().all()
    }
    match_ids = [match.id for match in matches]
    last_messages = await _last_messages(db, match_ids)
    unread = await _unread_counts(db, match_ids, user_id)

    out: List[MatchSummary] = []
    for match in matches:
        other_id = match.other_participant(user_id)
        other = users.get(other_id)
        if other is None:
            continue
        profile = profiles.get(other_id)
        out.append(MatchSummary(
            match_id=match.id,
            other_user=MatchUser(
                id=other.id,
                username=other.username,
                email=other.email,
                profile=ProfileRead.model_validate(profile) if profile else None,
            ),
            last_message=last_messages.get(match.id),
            unread_count=unread.get(match.id, 0),
            created_at=match.created_at,
            updated_at=match.updated_at,
        ))
    return out
