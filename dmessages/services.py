"""
Message store: creation, cursor-paginated listing, updates and deletion of
messages, including the DRAFT -> SENT -> READ status transitions.

Callers pass the acting user's id explicitly as ``viewer_id`` / ``sender_id``.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from conversations.models import Conversation
from conversations.participants import require_participant
from coursehub.exceptions import Forbidden, InvalidArgument, InvalidOperation, NotFound

from .models import Message, MessageStatus

logger = logging.getLogger(__name__)


@dataclass
class MessagePage:
    messages: List[Message] = field(default_factory=list)
    next_cursor: Optional[uuid.UUID] = None


@dataclass
class MessageUpdate:
    """Partial update of a message; ``None`` means "leave unchanged"."""

    content: Optional[str] = None
    is_draft: Optional[bool] = None
    status: Optional[str] = None

    def is_empty(self):
        return self.content is None and self.is_draft is None and self.status is None


def clean_content(content) -> str:
    if not isinstance(content, str) or not content.strip():
        raise InvalidArgument("Message content is required")
    return content.strip()


def clamp_limit(limit, default) -> int:
    if limit is None:
        return default
    if limit < 1:
        raise InvalidArgument("limit must be a positive integer")
    return min(limit, settings.MAX_PAGE_SIZE)


def parse_cursor(cursor) -> Optional[uuid.UUID]:
    if cursor in (None, ""):
        return None
    if isinstance(cursor, uuid.UUID):
        return cursor
    try:
        return uuid.UUID(str(cursor))
    except ValueError:
        raise InvalidArgument("Invalid cursor")


def can_edit_content(message, now=None) -> bool:
    if message.is_draft:
        return True
    now = now or timezone.now()
    window = timedelta(seconds=settings.MESSAGE_EDIT_WINDOW_SECONDS)
    return now - message.created_at < window


def mark_read_on_fetch(messages, viewer_id) -> int:
    """
    Move fetched SENT messages from other senders to READ.

    The update is conditional on ``status=SENT`` so that concurrent readers
    cannot regress or double-count a transition. The in-memory instances are
    updated to match.
    """
    unread_ids = {
        m.id for m in messages
        if not m.is_draft and m.sender_id != viewer_id and m.status == MessageStatus.SENT
    }
    if not unread_ids:
        return 0

    updated = Message.objects.filter(pk__in=unread_ids, status=MessageStatus.SENT).update(
        status=MessageStatus.READ
    )
    for message in messages:
        if message.id in unread_ids:
            message.status = MessageStatus.READ
    return updated


def create_message(conversation_id, sender_id, content, is_draft=False) -> Message:
    require_participant(sender_id, conversation_id)
    text = clean_content(content)

    with transaction.atomic():
        message = Message.objects.create(
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=text,
            is_draft=is_draft,
            status=MessageStatus.DRAFT if is_draft else MessageStatus.SENT,
        )
        if not is_draft:
            Conversation.objects.touch(conversation_id, message.created_at)

    logger.info(
        "Message %s %s in conversation %s by %s",
        message.id, "saved as draft" if is_draft else "sent", conversation_id, sender_id,
    )
    return message


def list_messages(conversation_id, viewer_id, cursor=None, limit=None, include_drafts=False) -> MessagePage:
    """
    Return one page of messages, oldest first.

    Pages are cut from the newest end: the first page holds the latest
    ``limit`` messages, and ``cursor`` (the id of the oldest message already
    seen) asks for the ``limit`` messages strictly older than it. The
    returned ``next_cursor`` is set only when the page came back full.
    Fetching marks other participants' SENT messages as READ.
    """
    limit = clamp_limit(limit, settings.MESSAGE_PAGE_SIZE)
    cursor_id = parse_cursor(cursor)
    require_participant(viewer_id, conversation_id)

    queryset = (
        Message.objects.filter(conversation_id=conversation_id)
        .visible_to(viewer_id, include_drafts=include_drafts)
        .select_related('sender')
    )

    if cursor_id is not None:
        anchor = queryset.filter(pk=cursor_id).values('created_at', 'id').first()
        if anchor is None:
            return MessagePage()
        queryset = queryset.filter(
            Q(created_at__lt=anchor['created_at'])
            | Q(created_at=anchor['created_at'], id__lt=anchor['id'])
        )

    with transaction.atomic():
        messages = list(queryset.newest_first()[:limit])
        mark_read_on_fetch(messages, viewer_id)

    next_cursor = messages[-1].id if len(messages) == limit else None
    messages.reverse()
    return MessagePage(messages=messages, next_cursor=next_cursor)


def _load_visible(message_id, viewer_id, for_update=False) -> Message:
    queryset = Message.objects.select_related('sender')
    if for_update:
        queryset = queryset.select_for_update(of=('self',))
    message = queryset.filter(pk=message_id).first()
    if message is None:
        raise NotFound("Message not found")
    require_participant(viewer_id, message.conversation_id)
    if message.is_draft and message.sender_id != viewer_id:
        raise NotFound("Message not found")
    return message


def get_message(message_id, viewer_id) -> Message:
    with transaction.atomic():
        message = _load_visible(message_id, viewer_id)
        mark_read_on_fetch([message], viewer_id)
    return message


def update_message(message_id, viewer_id, changes: MessageUpdate) -> Message:
    if changes.is_empty():
        raise InvalidArgument("No valid updates provided")

    with transaction.atomic():
        message = _load_visible(message_id, viewer_id, for_update=True)
        is_sender = message.sender_id == viewer_id
        updates = {}
        sending = False

        if (changes.content is not None or changes.is_draft is not None) and not is_sender:
            raise Forbidden("Only the sender can edit this message")

        if changes.content is not None:
            if not can_edit_content(message):
                raise InvalidOperation("Can only edit draft messages or recent messages")
            updates['content'] = clean_content(changes.content)

        if changes.is_draft is not None:
            if changes.is_draft and not message.is_draft:
                raise InvalidOperation("Cannot convert a sent message to a draft")
            if message.is_draft and not changes.is_draft:
                updates['is_draft'] = False
                updates['status'] = MessageStatus.SENT
                sending = True

        # Only READ is acted on; other status values carry no transition.
        if changes.status == MessageStatus.READ and not is_sender and message.status == MessageStatus.SENT:
            updates['status'] = MessageStatus.READ

        if not updates:
            raise InvalidArgument("No valid updates provided")

        for name, value in updates.items():
            setattr(message, name, value)
        message.save(update_fields=[*updates.keys(), 'updated_at'])

        if sending:
            Conversation.objects.touch(message.conversation_id)

    if sending:
        logger.info("Draft %s sent in conversation %s", message.id, message.conversation_id)
    return message


def delete_message(message_id, viewer_id) -> None:
    with transaction.atomic():
        message = _load_visible(message_id, viewer_id, for_update=True)
        if message.sender_id != viewer_id:
            raise Forbidden("Can only delete your own messages")
        message.delete()

    logger.info("Message %s deleted by %s", message_id, viewer_id)
