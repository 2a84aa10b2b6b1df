from rest_framework import serializers

from conversations.inbox import display_name
from users.serializers import UserSummarySerializer

from .models import Message, MessageStatus
from .services import MessageUpdate


class WhitespaceAllowedCharField(serializers.CharField):
    """CharField that passes content through untouched; the services trim and validate it."""

    def __init__(self, **kwargs):
        kwargs.setdefault('allow_blank', True)
        kwargs.setdefault('trim_whitespace', False)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        if data is None:
            raise serializers.ValidationError("This field may not be null.")
        if not isinstance(data, str):
            raise serializers.ValidationError("Message content must be a string.")
        return data


class MessageSerializer(serializers.ModelSerializer):
    conversationId = serializers.UUIDField(source='conversation_id', read_only=True)
    senderId = serializers.CharField(source='sender_id', read_only=True)
    sender = UserSummarySerializer(read_only=True)
    isDraft = serializers.BooleanField(source='is_draft', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Message
        fields = [
            'id', 'conversationId', 'senderId', 'sender', 'content',
            'isDraft', 'status', 'createdAt', 'updatedAt',
        ]
        read_only_fields = fields


class DraftListSerializer(serializers.ModelSerializer):
    """Draft row for the drafts tab, labelled with its conversation's name."""

    conversationId = serializers.UUIDField(source='conversation_id', read_only=True)
    conversationName = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Message
        fields = ['id', 'content', 'conversationId', 'conversationName', 'createdAt', 'updatedAt']
        read_only_fields = fields

    def get_conversationName(self, obj):
        return display_name(obj.conversation, obj.sender_id)


class MessageCreateSerializer(serializers.Serializer):
    content = WhitespaceAllowedCharField()
    isDraft = serializers.BooleanField(default=False)


class MessageListQuerySerializer(serializers.Serializer):
    cursor = serializers.CharField(required=False, allow_blank=True)
    limit = serializers.IntegerField(required=False, min_value=1)
    includeDrafts = serializers.BooleanField(default=False)


class MessageUpdateSerializer(serializers.Serializer):
    content = WhitespaceAllowedCharField(required=False)
    isDraft = serializers.BooleanField(required=False)
    status = serializers.ChoiceField(choices=MessageStatus.choices, required=False)

    def to_update(self) -> MessageUpdate:
        data = self.validated_data
        return MessageUpdate(
            content=data.get('content'),
            is_draft=data.get('isDraft'),
            status=data.get('status'),
        )


class DraftCreateSerializer(serializers.Serializer):
    content = WhitespaceAllowedCharField()
    conversationId = serializers.UUIDField()


class DraftUpdateSerializer(serializers.Serializer):
    content = WhitespaceAllowedCharField()


class NewDraftSerializer(serializers.Serializer):
    content = WhitespaceAllowedCharField()
    participantIds = serializers.ListField(child=serializers.CharField(max_length=100), allow_empty=False)
    isGroup = serializers.BooleanField(default=False)
    groupName = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    courseId = serializers.CharField(required=False, allow_blank=True, allow_null=True)
