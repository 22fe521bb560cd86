# routers/messages.py
from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user
from core.state import get_notifier
from models.user import User
from schemas.message import MessageCreate, MessageRead
from services.conversation import append_message, list_messages
from services.notifier import Notifier

router = APIRouter(prefix="/api/messages", tags=["Messages"])


@router.get(
    "/{match_id}",
    response_model=List[MessageRead],
    summary="Переписка матча; сообщения собеседника помечаются прочитанными",
)
async def get_messages(
    match_id: int = Path(..., description="ID матча"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[MessageRead]:
    return await list_messages(db, match_id, current_user.id)


@router.post(
    "/{match_id}",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Отправить сообщение в матч",
)
async def send_message(
    payload: MessageCreate,
    match_id: int = Path(..., description="ID матча"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
) -> MessageRead:
    return await append_message(
        db,
        match_id,
        current_user.id,
        payload.content,
        notifier=notifier,
        client_token=payload.client_token,
    )
