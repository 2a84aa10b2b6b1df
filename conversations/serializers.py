from rest_framework import serializers

from courses.models import Course
from dmessages.serializers import MessageSerializer
from users.serializers import UserSummarySerializer

from .models import Conversation, ConversationParticipant
from .services import MembershipChangeRequest, RenameRequest


class CourseSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Course
        fields = ['id', 'name', 'code']
        read_only_fields = fields


class ParticipantSerializer(serializers.ModelSerializer):
    id = serializers.CharField(source='user.user_id', read_only=True)
    firstName = serializers.CharField(source='user.first_name', read_only=True)
    lastName = serializers.CharField(source='user.last_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    role = serializers.CharField(source='user.role', read_only=True)
    isAdmin = serializers.BooleanField(source='is_admin', read_only=True)

    class Meta:
        model = ConversationParticipant
        fields = ['id', 'firstName', 'lastName', 'email', 'role', 'isAdmin']
        read_only_fields = fields


class ConversationSerializer(serializers.ModelSerializer):
    """Conversation metadata with its full participant list."""

    isGroup = serializers.BooleanField(source='is_group', read_only=True)
    isAnnouncement = serializers.BooleanField(source='is_announcement', read_only=True)
    courseId = serializers.UUIDField(source='course_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)
    participants = serializers.SerializerMethodField()

    class Meta:
        model = Conversation
        fields = [
            'id', 'name', 'isGroup', 'isAnnouncement', 'courseId',
            'createdAt', 'updatedAt', 'participants',
        ]
        read_only_fields = fields

    def get_participants(self, obj):
        members = obj.participants.select_related('user')
        return ParticipantSerializer(members, many=True).data


class ConversationDetailSerializer(serializers.Serializer):
    """Serializes a ``ConversationDetail``: metadata, course, members and recent messages."""

    id = serializers.UUIDField(source='conversation.id')
    name = serializers.CharField(source='conversation.name', allow_null=True)
    isGroup = serializers.BooleanField(source='conversation.is_group')
    isAnnouncement = serializers.BooleanField(source='conversation.is_announcement')
    courseId = serializers.UUIDField(source='conversation.course_id', allow_null=True)
    course = CourseSummarySerializer(source='conversation.course', allow_null=True)
    createdAt = serializers.DateTimeField(source='conversation.created_at')
    updatedAt = serializers.DateTimeField(source='conversation.updated_at')
    participants = ParticipantSerializer(many=True)
    messages = MessageSerializer(many=True)


class ConversationSummarySerializer(serializers.Serializer):
    """One inbox row."""

    id = serializers.UUIDField(source='conversation.id')
    name = serializers.CharField()
    isGroup = serializers.BooleanField(source='conversation.is_group')
    isAnnouncement = serializers.BooleanField(source='conversation.is_announcement')
    courseId = serializers.UUIDField(source='conversation.course_id', allow_null=True)
    participants = UserSummarySerializer(source='other_participants', many=True)
    lastMessage = MessageSerializer(source='last_message', allow_null=True)
    unreadCount = serializers.IntegerField(source='unread_count')
    updatedAt = serializers.DateTimeField(source='conversation.updated_at')


class InboxQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(default=1, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1)
    isAnnouncement = serializers.BooleanField(default=False)


class ConversationCreateSerializer(serializers.Serializer):
    participantIds = serializers.ListField(child=serializers.CharField(max_length=100), allow_empty=True)
    name = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    isGroup = serializers.BooleanField(default=False)
    isAnnouncement = serializers.BooleanField(default=False)
    courseId = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ConversationUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    addParticipants = serializers.ListField(child=serializers.CharField(max_length=100), required=False)
    removeParticipants = serializers.ListField(child=serializers.CharField(max_length=100), required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("No valid updates provided")
        return attrs

    def to_changes(self):
        """Split the PATCH body into typed change requests."""
        data = self.validated_data
        changes = []
        if 'name' in data:
            changes.append(RenameRequest(name=data['name']))
        add = tuple(data.get('addParticipants') or ())
        remove = tuple(data.get('removeParticipants') or ())
        if add or remove:
            changes.append(MembershipChangeRequest(add=add, remove=remove))
        return changes
