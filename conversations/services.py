"""
Conversation directory: creation (with 1:1 deduplication), detail, rename,
membership changes, deletion, and per-conversation read state.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from django.conf import settings
from django.db import IntegrityError, transaction

from courses.models import Course
from coursehub.exceptions import Forbidden, InvalidArgument, InvalidOperation, NotFound
from dmessages.models import Message, MessageStatus
from users.models import User

from .models import Conversation, ConversationParticipant, make_pair_key
from .participants import require_admin, require_participant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenameRequest:
    name: Optional[str]


@dataclass(frozen=True)
class MembershipChangeRequest:
    add: Tuple[str, ...] = ()
    remove: Tuple[str, ...] = ()


ConversationChange = Union[RenameRequest, MembershipChangeRequest]


@dataclass
class ConversationDetail:
    conversation: Conversation
    participants: List[ConversationParticipant] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)


def _unique_ids(ids: Sequence[str]) -> List[str]:
    seen = []
    for user_id in ids:
        user_id = str(user_id).strip()
        if user_id and user_id not in seen:
            seen.append(user_id)
    return seen


def _require_known_users(user_ids):
    known = set(User.objects.filter(user_id__in=user_ids).values_list('user_id', flat=True))
    missing = [user_id for user_id in user_ids if user_id not in known]
    if missing:
        raise InvalidArgument(f"Unknown user ids: {', '.join(missing)}")


def _resolve_course(course_id):
    if course_id in (None, ""):
        return None
    try:
        course_uuid = uuid.UUID(str(course_id))
    except ValueError:
        raise NotFound("Course not found")
    course = Course.objects.filter(pk=course_uuid).first()
    if course is None:
        raise NotFound("Course not found")
    return course


def create_conversation(creator_id, participant_ids, name=None, is_group=False,
                        course_id=None, is_announcement=False):
    """
    Create a conversation and return ``(conversation, created)``.

    The creator is always a participant and the only admin. A direct
    conversation between two users is created at most once; asking again
    returns the existing one with ``created=False``.
    """
    member_ids = _unique_ids(list(participant_ids) + [creator_id])

    if not is_group and len(member_ids) != 2:
        raise InvalidArgument("A direct conversation needs exactly two participants")
    _require_known_users(member_ids)
    course = _resolve_course(course_id)

    pair_key = None
    if not is_group and not is_announcement:
        pair_key = make_pair_key(*member_ids)
        existing = Conversation.objects.filter(pair_key=pair_key).first()
        if existing is not None:
            return existing, False

    clean_name = name.strip() if is_group and isinstance(name, str) and name.strip() else None

    try:
        with transaction.atomic():
            conversation = Conversation.objects.create(
                name=clean_name,
                is_group=is_group,
                is_announcement=is_announcement,
                course=course,
                pair_key=pair_key,
            )
            ConversationParticipant.objects.bulk_create([
                ConversationParticipant(
                    conversation=conversation,
                    user_id=user_id,
                    is_admin=user_id == creator_id,
                )
                for user_id in member_ids
            ])
    except IntegrityError:
        # Lost the race against a concurrent create of the same direct pair.
        existing = Conversation.objects.filter(pair_key=pair_key).first() if pair_key else None
        if existing is None:
            raise
        return existing, False

    logger.info(
        "Conversation %s created by %s with %d participants",
        conversation.id, creator_id, len(member_ids),
    )
    return conversation, True


def get_conversation(conversation_id, viewer_id, message_limit=None) -> ConversationDetail:
    require_participant(viewer_id, conversation_id)

    conversation = Conversation.objects.select_related('course').filter(pk=conversation_id).first()
    if conversation is None:
        raise NotFound("Conversation not found")

    limit = message_limit or settings.CONVERSATION_DETAIL_MESSAGES
    messages = list(
        Message.objects.filter(conversation=conversation)
        .visible_to(viewer_id, include_drafts=True)
        .select_related('sender')
        .newest_first()[:limit]
    )
    messages.reverse()

    participants = list(conversation.participants.select_related('user'))
    return ConversationDetail(conversation=conversation, participants=participants, messages=messages)


def _rename(conversation, change: RenameRequest):
    if not conversation.is_group:
        raise InvalidOperation("Direct conversations cannot be renamed")
    name = change.name.strip() if isinstance(change.name, str) else None
    conversation.name = name or None
    conversation.save(update_fields=['name'])


def _change_membership(conversation, membership, change: MembershipChangeRequest):
    if not membership.is_admin:
        raise Forbidden("Only admins can change conversation members")
    if not conversation.is_group:
        raise InvalidOperation("Members of a direct conversation cannot be changed")

    to_add = _unique_ids(change.add)
    to_remove = set(_unique_ids(change.remove))
    if to_remove.intersection(to_add):
        raise InvalidArgument("A user cannot be both added and removed")
    _require_known_users(to_add)

    current = dict(
        ConversationParticipant.objects.filter(conversation=conversation)
        .values_list('user_id', 'is_admin')
    )
    remaining = {uid: admin for uid, admin in current.items() if uid not in to_remove}
    remaining.update({uid: False for uid in to_add if uid not in current})

    if not remaining:
        raise InvalidOperation("A conversation must keep at least one participant")
    if not any(remaining.values()):
        raise InvalidOperation("A group conversation must keep at least one admin")

    ConversationParticipant.objects.bulk_create(
        [
            ConversationParticipant(conversation=conversation, user_id=uid, is_admin=False)
            for uid in to_add if uid not in current
        ],
        ignore_conflicts=True,
    )
    if to_remove:
        ConversationParticipant.objects.filter(
            conversation=conversation, user_id__in=to_remove
        ).delete()


def update_conversation(conversation_id, viewer_id, changes: Sequence[ConversationChange]) -> Conversation:
    """
    Apply rename and membership changes as one unit.

    Any participant may rename a group conversation; membership changes are
    reserved to admins.
    """
    if not changes:
        raise InvalidArgument("No valid updates provided")

    membership = require_participant(viewer_id, conversation_id)

    with transaction.atomic():
        conversation = Conversation.objects.select_for_update().filter(pk=conversation_id).first()
        if conversation is None:
            raise NotFound("Conversation not found")

        for change in changes:
            if isinstance(change, RenameRequest):
                _rename(conversation, change)
            elif isinstance(change, MembershipChangeRequest):
                _change_membership(conversation, membership, change)
            else:
                raise InvalidArgument("Unsupported conversation change")

    logger.info("Conversation %s updated by %s", conversation_id, viewer_id)
    return conversation


def delete_conversation(conversation_id, viewer_id) -> None:
    require_admin(viewer_id, conversation_id, action="delete")
    Conversation.objects.filter(pk=conversation_id).delete()
    logger.info("Conversation %s deleted by %s", conversation_id, viewer_id)


def mark_conversation_read(conversation_id, viewer_id) -> int:
    require_participant(viewer_id, conversation_id)
    return (
        Message.objects.filter(conversation_id=conversation_id)
        .unread_for(viewer_id)
        .update(status=MessageStatus.READ)
    )


def conversation_unread_count(conversation_id, viewer_id) -> int:
    require_participant(viewer_id, conversation_id)
    return Message.objects.filter(conversation_id=conversation_id).unread_for(viewer_id).count()
