import uuid
from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from conversations.services import create_conversation
from coursehub.jwt_utils import generate_test_token
from users.models import User
from ..models import Message, MessageStatus


class MessageAPITestCase(APITestCase):
    def setUp(self):
        User.objects.create(user_id="alice", first_name="Alice", last_name="Adams")
        User.objects.create(user_id="bob", first_name="Bob", last_name="Brown")
        User.objects.create(user_id="carol", first_name="Carol", last_name="Clark")
        self.conversation, _ = create_conversation("alice", ["bob"])
        self.login("alice")

    def login(self, user_id):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {generate_test_token(user_id)}")

    def message(self, sender="alice", content="Hello", is_draft=False):
        return Message.objects.create(
            conversation=self.conversation, sender_id=sender, content=content, is_draft=is_draft,
            status=MessageStatus.DRAFT if is_draft else MessageStatus.SENT,
        )


class MessageDetailViewTest(MessageAPITestCase):
    def url(self, message_id):
        return reverse('dmessages:message-detail', args=[message_id])

    def test_recipient_get_marks_read(self):
        message = self.message()
        self.login("bob")

        response = self.client.get(self.url(message.id))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], MessageStatus.READ)
        self.assertEqual(response.data['sender']['firstName'], "Alice")

    def test_unknown_message(self):
        response = self.client.get(self.url(uuid.uuid4()))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': "Message not found"})

    def test_sender_edits_recent_message(self):
        message = self.message()

        response = self.client.patch(self.url(message.id), {'content': "Hello there"}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['content'], "Hello there")

    def test_edit_after_window(self):
        message = self.message()
        Message.objects.filter(pk=message.pk).update(created_at=timezone.now() - timedelta(minutes=10))

        response = self.client.patch(self.url(message.id), {'content': "too late"}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': "Can only edit draft messages or recent messages"})

    def test_recipient_cannot_edit(self):
        message = self.message()
        self.login("bob")

        response = self.client.patch(self.url(message.id), {'content': "forged"}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_recipient_marks_read(self):
        message = self.message()
        self.login("bob")

        response = self.client.patch(self.url(message.id), {'status': "READ"}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], MessageStatus.READ)

    def test_unknown_status_value(self):
        message = self.message()
        response = self.client.patch(self.url(message.id), {'status': "ARCHIVED"}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_draft_sent_with_sent_status(self):
        draft = self.message(content="ready", is_draft=True)

        response = self.client.patch(self.url(draft.id), {'isDraft': False, 'status': "SENT"}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], MessageStatus.SENT)
        self.assertFalse(response.data['isDraft'])

    def test_empty_patch(self):
        message = self.message()
        response = self.client.patch(self.url(message.id), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': "No valid updates provided"})

    def test_delete_own_message(self):
        message = self.message()

        response = self.client.delete(self.url(message.id))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'success': True})
        self.assertFalse(Message.objects.filter(pk=message.pk).exists())

    def test_delete_someone_elses_message(self):
        message = self.message(sender="bob")

        response = self.client.delete(self.url(message.id))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, {'error': "Can only delete your own messages"})

    def test_outsider_is_forbidden(self):
        message = self.message()
        self.login("carol")
        self.assertEqual(self.client.get(self.url(message.id)).status_code, status.HTTP_403_FORBIDDEN)


class DraftViewTest(MessageAPITestCase):
    def setUp(self):
        super().setUp()
        self.list_url = reverse('dmessages:draft-list-create')

    def detail_url(self, draft_id):
        return reverse('dmessages:draft-detail', args=[draft_id])

    def test_create_and_list_drafts(self):
        response = self.client.post(
            self.list_url, {'conversationId': str(self.conversation.id), 'content': "idea"}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['isDraft'])

        listing = self.client.get(self.list_url)

        self.assertEqual(listing.status_code, status.HTTP_200_OK)
        self.assertEqual(len(listing.data), 1)
        self.assertEqual(listing.data[0]['content'], "idea")
        self.assertEqual(listing.data[0]['conversationName'], "Bob Brown")

    def test_drafts_are_private(self):
        draft = self.message(content="secret", is_draft=True)
        self.login("bob")

        self.assertEqual(self.client.get(self.list_url).data, [])
        response = self.client.get(self.detail_url(draft.id))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': "Draft not found"})

    def test_update_draft(self):
        draft = self.message(content="v1", is_draft=True)

        response = self.client.patch(self.detail_url(draft.id), {'content': "v2"}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['content'], "v2")

    def test_delete_draft(self):
        draft = self.message(content="bin it", is_draft=True)

        response = self.client.delete(self.detail_url(draft.id))

        self.assertEqual(response.data, {'success': True})
        self.assertFalse(Message.objects.filter(pk=draft.pk).exists())

    def test_send_draft_once(self):
        draft = self.message(content="go", is_draft=True)

        first = self.client.post(self.detail_url(draft.id))
        second = self.client.post(self.detail_url(draft.id))

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data['status'], MessageStatus.SENT)
        self.assertFalse(first.data['isDraft'])
        self.assertEqual(second.status_code, status.HTTP_404_NOT_FOUND)

    def test_new_conversation_draft(self):
        response = self.client.post(
            reverse('dmessages:new-draft'),
            {'participantIds': ["carol"], 'content': "Hi Carol"},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['draft']['isDraft'])
        self.assertEqual(
            {p['id'] for p in response.data['conversation']['participants']}, {"alice", "carol"}
        )
        self.assertEqual(response.data['draft']['conversationId'], response.data['conversation']['id'])

    def test_new_conversation_draft_needs_participants(self):
        response = self.client.post(
            reverse('dmessages:new-draft'), {'participantIds': [], 'content': "x"}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
