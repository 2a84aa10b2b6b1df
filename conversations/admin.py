from django.contrib import admin
from .models import Conversation, ConversationParticipant


class ConversationParticipantInline(admin.TabularInline):
    model = ConversationParticipant
    extra = 0
    raw_id_fields = ['user']


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'is_group', 'is_announcement', 'course', 'created_at', 'updated_at']
    list_filter = ['is_group', 'is_announcement', 'created_at', 'updated_at']
    search_fields = ['id', 'name', 'participants__user__user_id']
    readonly_fields = ['id', 'pair_key', 'created_at', 'updated_at']
    inlines = [ConversationParticipantInline]
