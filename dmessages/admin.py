from django.contrib import admin
from .models import Message


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ['id', 'conversation', 'sender', 'content_preview', 'status', 'is_draft', 'created_at']
    list_filter = ['status', 'is_draft', 'created_at']
    search_fields = ['content', 'sender__user_id', 'conversation__id']
    readonly_fields = ['created_at', 'updated_at']
    raw_id_fields = ['conversation', 'sender']

    @admin.display(description='Content Preview')
    def content_preview(self, obj):
        return obj.content[:50] + "..." if len(obj.content) > 50 else obj.content
