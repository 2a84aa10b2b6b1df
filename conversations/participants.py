"""
Participant directory: who belongs to which conversation, and who is admin.

Every read or write on a conversation or its messages goes through
``require_participant`` before touching anything else.
"""

from coursehub.exceptions import Forbidden

from .models import ConversationParticipant


def get_membership(user_id, conversation_id):
    return ConversationParticipant.objects.filter(
        user_id=user_id, conversation_id=conversation_id
    ).first()


def is_participant(user_id, conversation_id) -> bool:
    return ConversationParticipant.objects.filter(
        user_id=user_id, conversation_id=conversation_id
    ).exists()


def is_admin(user_id, conversation_id) -> bool:
    return ConversationParticipant.objects.filter(
        user_id=user_id, conversation_id=conversation_id, is_admin=True
    ).exists()


def require_participant(user_id, conversation_id) -> ConversationParticipant:
    membership = get_membership(user_id, conversation_id)
    if membership is None:
        raise Forbidden("Not a participant in this conversation")
    return membership


def require_admin(user_id, conversation_id, action="manage") -> ConversationParticipant:
    membership = require_participant(user_id, conversation_id)
    if not membership.is_admin:
        raise Forbidden(f"Only admins can {action} the conversation")
    return membership


def participant_ids(conversation_id):
    return list(
        ConversationParticipant.objects.filter(conversation_id=conversation_id)
        .values_list('user_id', flat=True)
    )
