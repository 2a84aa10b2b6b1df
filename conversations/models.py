import uuid

from django.db import models
from django.utils import timezone


def make_pair_key(user_a, user_b):
    """Order-independent key identifying the direct conversation of two users."""
    first, second = sorted([user_a, user_b])
    return f"{first}:{second}"


class ConversationQuerySet(models.QuerySet):
    def for_user(self, user_id):
        return self.filter(participants__user_id=user_id)

    def touch(self, conversation_id, when=None):
        """Move the last-activity marker used for inbox ordering."""
        when = when or timezone.now()
        self.filter(pk=conversation_id).update(updated_at=when)
        return when


class Conversation(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, null=True, blank=True)
    is_group = models.BooleanField(default=False)
    is_announcement = models.BooleanField(default=False)
    course = models.ForeignKey(
        'courses.Course', on_delete=models.SET_NULL, related_name='conversations', null=True, blank=True
    )
    # Set only for direct (non-group) conversations; unique so that two
    # concurrent "start conversation" requests cannot both insert.
    pair_key = models.CharField(max_length=255, unique=True, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    # Last-activity marker, moved by objects.touch() when a message is sent.
    updated_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = ConversationQuerySet.as_manager()

    class Meta:
        db_table = 'conversations_conversation'
        ordering = ['-updated_at']

    def __str__(self):
        return f"Conversation {self.name or self.id}"


class ConversationParticipant(models.Model):
    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name='participants')
    user = models.ForeignKey('users.User', on_delete=models.CASCADE, related_name='conversation_memberships')
    is_admin = models.BooleanField(default=False)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'conversations_participant'
        ordering = ['joined_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['user', 'conversation'], name='unique_conversation_participant'),
        ]

    def __str__(self):
        role = "admin" if self.is_admin else "member"
        return f"{self.user_id} in {self.conversation_id} ({role})"
