from rest_framework.permissions import BasePermission

from conversations import participants


class IsConversationParticipant(BasePermission):
    """
    View-level gate: the caller must belong to the conversation named by the
    ``conversation_id`` URL kwarg.
    """

    message = 'Not a participant in this conversation'

    def has_permission(self, request, view):
        user = getattr(request, 'user', None)
        if user is None or not user.is_authenticated:
            return False

        conversation_id = view.kwargs.get('conversation_id')
        if conversation_id is None:
            return True
        return participants.is_participant(user.user_id, conversation_id)
