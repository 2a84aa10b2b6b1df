import uuid

from django.db import models
from django.utils import timezone


class MessageStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    SENT = "SENT", "Sent"
    READ = "READ", "Read"


class MessageQuerySet(models.QuerySet):
    def visible_to(self, user_id, include_drafts=True):
        """Non-draft messages, plus the user's own drafts when asked for."""
        if not include_drafts:
            return self.filter(is_draft=False)
        return self.filter(models.Q(is_draft=False) | models.Q(is_draft=True, sender_id=user_id))

    def unread_for(self, user_id):
        return self.filter(status=MessageStatus.SENT, is_draft=False).exclude(sender_id=user_id)

    def newest_first(self):
        return self.order_by('-created_at', '-id')


class Message(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    conversation = models.ForeignKey(
        'conversations.Conversation', on_delete=models.CASCADE, related_name='messages'
    )
    sender = models.ForeignKey('users.User', on_delete=models.CASCADE, related_name='sent_messages')
    content = models.TextField()
    is_draft = models.BooleanField(default=False)
    status = models.CharField(max_length=10, choices=MessageStatus.choices, default=MessageStatus.SENT)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MessageQuerySet.as_manager()

    class Meta:
        db_table = 'dmessages_message'
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['conversation', 'created_at'], name='message_conv_created_idx'),
            models.Index(fields=['sender', 'is_draft'], name='message_sender_draft_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(is_draft=True, status=MessageStatus.DRAFT)
                    | (models.Q(is_draft=False) & ~models.Q(status=MessageStatus.DRAFT))
                ),
                name='message_draft_matches_status',
            ),
        ]

    def __str__(self):
        return f"{self.sender_id}: {self.content[:50]}..."
