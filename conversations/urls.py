from django.urls import path
from . import views

app_name = 'conversations'

urlpatterns = [
    path('', views.ConversationListCreateView.as_view(), name='conversation-list'),
    path('unread-count/', views.UnreadSummaryView.as_view(), name='unread-summary'),
    path('<uuid:conversation_id>/', views.ConversationDetailView.as_view(), name='conversation-detail'),
    path('<uuid:conversation_id>/messages/', views.ConversationMessagesView.as_view(), name='conversation-messages'),
    path('<uuid:conversation_id>/mark-read/', views.ConversationMarkReadView.as_view(), name='conversation-mark-read'),
    path('<uuid:conversation_id>/unread-count/', views.ConversationUnreadCountView.as_view(), name='conversation-unread-count'),
]
