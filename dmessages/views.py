from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from conversations.serializers import ConversationSerializer

from . import drafts, services
from .serializers import (
    DraftCreateSerializer,
    DraftListSerializer,
    DraftUpdateSerializer,
    MessageSerializer,
    MessageUpdateSerializer,
    NewDraftSerializer,
)


class MessageDetailView(APIView):
    """
    Retrieve, update, or delete a message
    """

    def get(self, request, message_id):
        message = services.get_message(message_id, request.user.user_id)
        return Response(MessageSerializer(message).data)

    def patch(self, request, message_id):
        payload = MessageUpdateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        message = services.update_message(message_id, request.user.user_id, payload.to_update())
        return Response(MessageSerializer(message).data)

    def delete(self, request, message_id):
        services.delete_message(message_id, request.user.user_id)
        return Response({'success': True})


class DraftListCreateView(APIView):
    """The caller's drafts across all conversations"""

    def get(self, request):
        items = drafts.list_drafts(request.user.user_id)
        return Response(DraftListSerializer(items, many=True).data)

    def post(self, request):
        payload = DraftCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        draft = drafts.create_draft(
            request.user.user_id,
            payload.validated_data['conversationId'],
            payload.validated_data['content'],
        )
        return Response(MessageSerializer(draft).data, status=status.HTTP_201_CREATED)


class NewConversationDraftView(APIView):
    """Start a conversation and keep its first message as a draft"""

    def post(self, request):
        payload = NewDraftSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data

        draft, conversation = drafts.create_draft_conversation(
            request.user.user_id,
            data['participantIds'],
            data['content'],
            is_group=data['isGroup'],
            group_name=data.get('groupName'),
            course_id=data.get('courseId'),
        )
        return Response({
            'draft': MessageSerializer(draft).data,
            'conversation': ConversationSerializer(conversation).data,
        }, status=status.HTTP_201_CREATED)


class DraftDetailView(APIView):
    """Get, edit, delete or send one of the caller's drafts"""

    def get(self, request, draft_id):
        draft = drafts.get_draft(draft_id, request.user.user_id)
        return Response(MessageSerializer(draft).data)

    def patch(self, request, draft_id):
        payload = DraftUpdateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        draft = drafts.update_draft(draft_id, request.user.user_id, payload.validated_data['content'])
        return Response(MessageSerializer(draft).data)

    def delete(self, request, draft_id):
        drafts.delete_draft(draft_id, request.user.user_id)
        return Response({'success': True})

    def post(self, request, draft_id):
        message = drafts.send_draft(draft_id, request.user.user_id)
        return Response(MessageSerializer(message).data)
