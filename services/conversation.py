# services/conversation.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import Forbidden, InvalidArgument
from models.match import Match
from models.message import Message
from models.user import User
from schemas.events import NEW_MESSAGE
from schemas.message import MessageRead, MessageSender
from services.notifier import Notifier

logger = logging.getLogger(__name__)


def to_message_read(message: Message, username: str, client_token: Optional[str] = None) -> MessageRead:
    return MessageRead(
        id=message.id,
        match_id=message.match_id,
        sender=MessageSender(id=message.sender_id, username=username),
        content=message.content,
        read=message.read,
        created_at=message.created_at,
        client_token=client_token,
    )


async def get_match_for_participant(db: AsyncSession, match_id: int, user_id: int) -> Match:
    # несуществующий матч и чужой матч неразличимы для клиента
    match = await db.get(Match, match_id)
    if match is None or not match.has_participant(user_id):
        raise Forbidden("Forbidden access")
    return match


async def append_message(
    db: AsyncSession,
    match_id: int,
    sender_id: int,
    content: str,
    notifier: Optional[Notifier] = None,
    client_token: Optional[str] = None,
) -> MessageRead:
    """
    Добавляет сообщение в переписку матча и отправляет newMessage всем
    участникам, кроме автора.
    """
    text = (content or "").strip()
    if not text:
        raise InvalidArgument("Invalid message content")

    match = await get_match_for_participant(db, match_id, sender_id)
    recipients = [uid for uid in match.user_ids if uid != sender_id]

    now = datetime.now(timezone.utc)
    message = Message(match_id=match.id, sender_id=sender_id, content=text, read=False, created_at=now)
    db.add(message)
    match.updated_at = now
    await db.commit()
    await db.refresh(message)

    username = (
        await db.execute(select(User.username).where(User.id == sender_id))
    ).scalar_one()
    record = to_message_read(message, username, client_token)
    logger.info("Message %s sent in match %s by %s", record.id, match_id, sender_id)

    if notifier is not None:
        payload = record.model_dump(mode="json")
        for user_id in recipients:
            notifier.notify(user_id, NEW_MESSAGE, payload)
    return record


async def list_messages(db: AsyncSession, match_id: int, viewer_id: int) -> List[MessageRead]:
    """
    Вся переписка матча в порядке отправки.

    Побочный эффект: сообщения собеседника помечаются прочитанными.
    В ответе read отражает состояние до этой отметки.
    """
    await get_match_for_participant(db, match_id, viewer_id)

    result = await db.execute(
        select(Message, User.username)
        .join(User, User.id == Message.sender_id)
        .where(Message.match_id == match_id)
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    messages = [to_message_read(message, username) for message, username in result.all()]

    # отмечаются только выданные этим запросом сообщения
    unseen_ids = [m.id for m in messages if m.sender.id != viewer_id and not m.read]
    if unseen_ids:
        await db.execute(
            update(Message)
            .where(Message.id.in_(unseen_ids), Message.read.is_(False))
            .values(read=True)
        )
    await db.commit()
    if unseen_ids:
        logger.debug("Marked %s messages read in match %s for %s", len(unseen_ids), match_id, viewer_id)
    return messages
