from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from coursehub.permissions import IsConversationParticipant
from dmessages import services as message_services
from dmessages.serializers import MessageCreateSerializer, MessageListQuerySerializer, MessageSerializer

from . import inbox, services
from .serializers import (
    ConversationCreateSerializer,
    ConversationDetailSerializer,
    ConversationSerializer,
    ConversationSummarySerializer,
    ConversationUpdateSerializer,
    InboxQuerySerializer,
)


class ConversationListCreateView(APIView):
    """Inbox listing and conversation creation for the calling user"""

    def get(self, request):
        query = InboxQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        result = inbox.list_inbox(
            request.user.user_id,
            page=query.validated_data['page'],
            limit=query.validated_data.get('limit'),
            is_announcement=query.validated_data['isAnnouncement'],
        )

        return Response({
            'conversations': ConversationSummarySerializer(result.conversations, many=True).data,
            'hasMore': result.has_more,
            'total': result.total,
            'unreadCount': result.unread_count,
        })

    def post(self, request):
        payload = ConversationCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data

        conversation, created = services.create_conversation(
            request.user.user_id,
            data['participantIds'],
            name=data.get('name'),
            is_group=data['isGroup'],
            course_id=data.get('courseId'),
            is_announcement=data['isAnnouncement'],
        )

        return Response(
            ConversationSerializer(conversation).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class UnreadSummaryView(APIView):
    """Unread badge counts across direct conversations and announcements"""

    def get(self, request):
        summary = inbox.unread_summary(request.user.user_id)
        return Response({
            'unreadCount': summary['unread_count'],
            'directUnreadCount': summary['direct_unread_count'],
            'announcementUnreadCount': summary['announcement_unread_count'],
        })


class ConversationDetailView(APIView):
    """Get, rename/re-member, or delete one conversation"""

    def get(self, request, conversation_id):
        detail = services.get_conversation(conversation_id, request.user.user_id)
        return Response(ConversationDetailSerializer(detail).data)

    def patch(self, request, conversation_id):
        payload = ConversationUpdateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        conversation = services.update_conversation(
            conversation_id, request.user.user_id, payload.to_changes()
        )
        return Response(ConversationSerializer(conversation).data)

    def delete(self, request, conversation_id):
        services.delete_conversation(conversation_id, request.user.user_id)
        return Response({'success': True})


class ConversationMarkReadView(APIView):
    permission_classes = [IsConversationParticipant]

    def post(self, request, conversation_id):
        count = services.mark_conversation_read(conversation_id, request.user.user_id)
        return Response({'success': True, 'count': count})


class ConversationUnreadCountView(APIView):
    permission_classes = [IsConversationParticipant]

    def get(self, request, conversation_id):
        count = services.conversation_unread_count(conversation_id, request.user.user_id)
        return Response({'unreadCount': count})


class ConversationMessagesView(APIView):
    """
    Get messages for a specific conversation and create new messages
    """
    permission_classes = [IsConversationParticipant]

    def get(self, request, conversation_id):
        query = MessageListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        page = message_services.list_messages(
            conversation_id,
            request.user.user_id,
            cursor=query.validated_data.get('cursor'),
            limit=query.validated_data.get('limit'),
            include_drafts=query.validated_data['includeDrafts'],
        )

        return Response({
            'messages': MessageSerializer(page.messages, many=True).data,
            'nextCursor': str(page.next_cursor) if page.next_cursor else None,
        })

    def post(self, request, conversation_id):
        payload = MessageCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        message = message_services.create_message(
            conversation_id,
            request.user.user_id,
            payload.validated_data['content'],
            is_draft=payload.validated_data['isDraft'],
        )
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)
