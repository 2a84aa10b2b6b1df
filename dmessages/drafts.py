"""
Draft manager: operations on a single author's unsent messages.

Every lookup is scoped to ``sender_id=viewer_id, is_draft=True``. A miss is
reported as "Draft not found" whether or not the row exists under another
owner or has already been sent. Writes repeat the same scope in their
``UPDATE``/``DELETE`` filter, so a draft sent from another tab in the
meantime is not modified.
"""

import logging

from django.db import transaction
from django.utils import timezone

from conversations.models import Conversation
from conversations.participants import require_participant
from conversations.services import create_conversation
from coursehub.exceptions import NotFound

from .models import Message, MessageStatus
from .services import clean_content, create_message

logger = logging.getLogger(__name__)


def _drafts_of(viewer_id):
    return Message.objects.filter(sender_id=viewer_id, is_draft=True)


def _not_found():
    return NotFound("Draft not found")


def list_drafts(viewer_id):
    return list(
        _drafts_of(viewer_id)
        .select_related('conversation')
        .prefetch_related('conversation__participants__user')
        .order_by('-updated_at', '-id')
    )


def create_draft(viewer_id, conversation_id, content) -> Message:
    return create_message(conversation_id, viewer_id, content, is_draft=True)


def create_draft_conversation(viewer_id, participant_ids, content, is_group=False,
                              group_name=None, course_id=None):
    """Start (or reuse) a conversation and store a first draft in it."""
    text = clean_content(content)
    with transaction.atomic():
        conversation, _ = create_conversation(
            viewer_id,
            participant_ids,
            name=group_name,
            is_group=is_group,
            course_id=course_id,
        )
        draft = create_message(conversation.id, viewer_id, text, is_draft=True)
    return draft, conversation


def get_draft(draft_id, viewer_id) -> Message:
    draft = _drafts_of(viewer_id).select_related('conversation').filter(pk=draft_id).first()
    if draft is None:
        raise _not_found()
    require_participant(viewer_id, draft.conversation_id)
    return draft


def update_draft(draft_id, viewer_id, content) -> Message:
    text = clean_content(content)

    with transaction.atomic():
        draft = get_draft(draft_id, viewer_id)
        updated = _drafts_of(viewer_id).filter(pk=draft_id).update(
            content=text, updated_at=timezone.now()
        )
        if not updated:
            raise _not_found()

    draft.refresh_from_db()
    return draft


def delete_draft(draft_id, viewer_id) -> None:
    with transaction.atomic():
        get_draft(draft_id, viewer_id)
        deleted, _ = _drafts_of(viewer_id).filter(pk=draft_id).delete()
        if not deleted:
            raise _not_found()


def send_draft(draft_id, viewer_id) -> Message:
    """
    Deliver a draft: DRAFT -> SENT, and move the conversation's activity
    marker. Sending the same draft twice fails with NotFound.
    """
    draft = get_draft(draft_id, viewer_id)

    with transaction.atomic():
        now = timezone.now()
        updated = _drafts_of(viewer_id).filter(pk=draft_id).update(
            is_draft=False, status=MessageStatus.SENT, updated_at=now
        )
        if not updated:
            raise _not_found()
        Conversation.objects.touch(draft.conversation_id, now)

    logger.info("Draft %s sent in conversation %s", draft_id, draft.conversation_id)
    draft.refresh_from_db()
    return draft
