from django.urls import path
from .views import DraftDetailView, DraftListCreateView, MessageDetailView, NewConversationDraftView

app_name = 'dmessages'

urlpatterns = [
    path('drafts/', DraftListCreateView.as_view(), name='draft-list-create'),
    path('drafts/<uuid:draft_id>/', DraftDetailView.as_view(), name='draft-detail'),
    path('new-draft/', NewConversationDraftView.as_view(), name='new-draft'),
    path('<uuid:message_id>/', MessageDetailView.as_view(), name='message-detail'),
]
