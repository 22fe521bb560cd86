# routers/profile.py
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from core.config import settings
from core.database import get_db
from core.exceptions import NotFound
from core.security import get_current_user
from core.state import get_notifier
from models.like import InteractionStatus
from models.profile import Profile
from models.user import User
from schemas.interaction import InteractionRead, InteractionRequest, InteractionResponse
from schemas.match import MatchRead, MatchSummary
from schemas.profile import ProfileCard, ProfileRead
from services import discovery
from services.interactions import record_interaction
from services.matching import on_liked
from services.notifier import Notifier
from utils.s3 import upload_profile_picture

router = APIRouter(prefix="/api/profile", tags=["Profile"])
logger = logging.getLogger(__name__)


def _clean_interests(raw: Optional[List[str]]) -> List[str]:
    # приходит либо списком полей, либо одной строкой через запятую
    out: List[str] = []
    for item in raw or []:
        for part in item.split(","):
            part = part.strip()
            if part and part not in out:
                out.append(part)
    return out


@router.post(
    "",
    response_model=ProfileRead,
    summary="Создать или обновить свой профиль",
)
async def create_or_update_profile(
    response: Response,
    name: str = Form(..., min_length=3, max_length=100),
    bio: str = Form(..., min_length=3),
    gender: str = Form(..., min_length=3, max_length=32),
    date_of_birth: date = Form(..., description="Дата рождения (YYYY-MM-DD)"),
    interests: Optional[List[str]] = Form(None, description="Интересы списком или через запятую"),
    profile_picture: Optional[UploadFile] = File(None, description="Фото профиля"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ProfileRead:
    user_id = current_user.id

    picture_url: Optional[str] = None
    if profile_picture is not None and profile_picture.filename:
        data = await profile_picture.read()
        picture_url = await run_in_threadpool(
            upload_profile_picture, data, profile_picture.content_type, user_id
        )

    fields = dict(
        name=name.strip(),
        bio=bio.strip(),
        gender=gender.strip(),
        interests=_clean_interests(interests),
        date_of_birth=date_of_birth,
    )

    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if profile is None:
        profile = Profile(user_id=user_id, profile_picture=picture_url or "", **fields)
        db.add(profile)
        response.status_code = status.HTTP_201_CREATED
    else:
        for key, value in fields.items():
            setattr(profile, key, value)
        # без нового файла старое фото остаётся
        if picture_url:
            profile.profile_picture = picture_url

    await db.commit()
    await db.refresh(profile)
    return ProfileRead.model_validate(profile)


@router.get(
    "/me",
    response_model=ProfileCard,
    summary="Получить свой профиль",
)
async def read_my_profile(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ProfileCard:
    card = await discovery.get_profile_card(db, current_user.id)
    if card is None:
        raise NotFound("Profile not found")
    return card


@router.get(
    "/random",
    response_model=List[ProfileCard],
    summary="Пачка случайных профилей, по которым ещё нет решения",
)
async def random_profiles(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[ProfileCard]:
    return await discovery.random_profiles(db, current_user.id, settings.DISCOVERY_BATCH_SIZE)


@router.get(
    "/random/one",
    response_model=ProfileCard,
    summary="Один случайный профиль, по которому ещё нет решения",
)
async def random_profile(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ProfileCard:
    cards = await discovery.random_profiles(db, current_user.id, 1)
    return cards[0]


@router.post(
    "/interact",
    response_model=InteractionResponse,
    summary="Лайк или дизлайк профиля; при взаимном лайке создаётся матч",
)
async def interact(
    payload: InteractionRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
) -> InteractionResponse:
    user_id = current_user.id

    like = await record_interaction(db, user_id, payload.liked_user_id, payload.action)
    like_read = InteractionRead.model_validate(like)

    if payload.action == InteractionStatus.disliked:
        return InteractionResponse(message="Profile disliked successfully.", like=like_read)

    detection = await on_liked(db, user_id, payload.liked_user_id, notifier)
    if detection.match is None:
        return InteractionResponse(message="Profile liked successfully.", like=like_read)

    match_read = MatchRead(
        id=detection.match.id,
        users=list(detection.match.user_ids),
        created_at=detection.match.created_at,
    )
    if detection.created:
        response.status_code = status.HTTP_201_CREATED
        return InteractionResponse(message="Match created successfully.", like=like_read, match=match_read)
    return InteractionResponse(message="Match already exists.", like=like_read, match=match_read)


@router.get(
    "/matches",
    response_model=List[MatchSummary],
    summary="Список моих матчей",
)
async def my_matches(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[MatchSummary]:
    return await discovery.list_matches(db, current_user.id)


@router.get(
    "/liked-by-me",
    response_model=List[ProfileCard],
    summary="Профили, которые я лайкнул",
)
async def liked_by_me(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[ProfileCard]:
    return await discovery.liked_by(db, current_user.id)


@router.get(
    "/liked-me",
    response_model=List[ProfileCard],
    summary="Кто лайкнул меня, а я ещё не ответил",
)
async def liked_me(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[ProfileCard]:
    return await discovery.likers_of(db, current_user.id)
