"""
Inbox aggregator: the viewer's conversation list with display names, last
message, unread counts and offset pagination.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from django.db.models import Count, Exists, OuterRef, Prefetch, Subquery

from coursehub.exceptions import InvalidArgument
from dmessages.models import Message
from dmessages.services import clamp_limit
from users.models import User

from .models import Conversation, ConversationParticipant


@dataclass
class ConversationSummary:
    conversation: Conversation
    name: str
    last_message: Optional[Message]
    other_participants: List[User] = field(default_factory=list)
    unread_count: int = 0


@dataclass
class InboxPage:
    conversations: List[ConversationSummary]
    has_more: bool
    total: int
    unread_count: int


def other_participants(conversation, viewer_id):
    return [p.user for p in conversation.participants.all() if p.user_id != viewer_id]


def display_name(conversation, viewer_id):
    """
    Group name if one is set; otherwise the other participants' names
    (all of them for groups, the single counterpart for direct chats).
    """
    others = other_participants(conversation, viewer_id)
    if conversation.is_group:
        if conversation.name:
            return conversation.name
        if others:
            return ", ".join(user.full_name for user in others)
    elif others:
        return others[0].full_name
    return "Conversation"


def unread_total(viewer_id, is_announcement) -> int:
    return (
        Message.objects.filter(
            conversation__participants__user_id=viewer_id,
            conversation__is_announcement=is_announcement,
        )
        .unread_for(viewer_id)
        .count()
    )


def unread_summary(viewer_id) -> dict:
    direct = unread_total(viewer_id, is_announcement=False)
    announcements = unread_total(viewer_id, is_announcement=True)
    return {
        'unread_count': direct + announcements,
        'direct_unread_count': direct,
        'announcement_unread_count': announcements,
    }


def list_inbox(viewer_id, page=1, limit=None, is_announcement=False) -> InboxPage:
    """
    One page of the viewer's inbox, most recently active first.

    Conversations whose only visible messages are the viewer's own drafts
    (or that have no messages at all) are left out before paginating.
    """
    if page < 1:
        raise InvalidArgument("page must be a positive integer")
    limit = clamp_limit(limit, settings.CONVERSATION_PAGE_SIZE)
    skip = (page - 1) * limit

    delivered = Message.objects.filter(conversation=OuterRef('pk'), is_draft=False)
    conversations = (
        Conversation.objects.for_user(viewer_id)
        .filter(is_announcement=is_announcement)
        .filter(Exists(delivered))
        .order_by('-updated_at', '-id')
    )

    total = conversations.count()

    rows = list(
        conversations
        .annotate(last_message_id=Subquery(delivered.newest_first().values('id')[:1]))
        .prefetch_related(
            Prefetch('participants', queryset=ConversationParticipant.objects.select_related('user'))
        )[skip:skip + limit]
    )

    row_ids = [row.id for row in rows]
    last_messages = Message.objects.select_related('sender').in_bulk(
        [row.last_message_id for row in rows if row.last_message_id]
    )
    unread_by_conversation = dict(
        Message.objects.filter(conversation_id__in=row_ids)
        .unread_for(viewer_id)
        .order_by()
        .values('conversation_id')
        .annotate(total=Count('id'))
        .values_list('conversation_id', 'total')
    )

    summaries = [
        ConversationSummary(
            conversation=row,
            name=display_name(row, viewer_id),
            last_message=last_messages.get(row.last_message_id),
            other_participants=other_participants(row, viewer_id),
            unread_count=unread_by_conversation.get(row.id, 0),
        )
        for row in rows
    ]

    return InboxPage(
        conversations=summaries,
        has_more=total > skip + limit,
        total=total,
        unread_count=unread_total(viewer_id, is_announcement),
    )
