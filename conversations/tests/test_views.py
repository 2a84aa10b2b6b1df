import uuid

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from courses.models import Course
from coursehub.jwt_utils import generate_test_token
from dmessages.models import Message, MessageStatus
from users.models import User
from ..models import Conversation
from ..services import create_conversation


class ConversationAPITestCase(APITestCase):
    def setUp(self):
        for user_id, first, last in [
            ("alice", "Alice", "Adams"),
            ("bob", "Bob", "Brown"),
            ("carol", "Carol", "Clark"),
        ]:
            User.objects.create(user_id=user_id, first_name=first, last_name=last)
        self.login("alice")

    def login(self, user_id):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {generate_test_token(user_id)}")

    def detail_url(self, conversation):
        return reverse('conversations:conversation-detail', args=[conversation.id])

    def messages_url(self, conversation):
        return reverse('conversations:conversation-messages', args=[conversation.id])


class ConversationListCreateTest(ConversationAPITestCase):
    def setUp(self):
        super().setUp()
        self.url = reverse('conversations:conversation-list')

    def test_requires_authentication(self):
        self.client.credentials()
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('error', response.data)

    def test_create_then_reuse_direct_conversation(self):
        created = self.client.post(self.url, {'participantIds': ["bob"]}, format='json')
        reused = self.client.post(self.url, {'participantIds': ["bob"]}, format='json')

        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        self.assertEqual(reused.status_code, status.HTTP_200_OK)
        self.assertEqual(created.data['id'], reused.data['id'])
        self.assertFalse(created.data['isGroup'])
        self.assertEqual({p['id'] for p in created.data['participants']}, {"alice", "bob"})

    def test_create_group_with_course(self):
        course = Course.objects.create(name="Databases", code="CS305")

        response = self.client.post(self.url, {
            'participantIds': ["bob", "carol"],
            'isGroup': True,
            'name': "Query club",
            'courseId': str(course.id),
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], "Query club")
        self.assertEqual(str(response.data['courseId']), str(course.id))
        admins = [p['id'] for p in response.data['participants'] if p['isAdmin']]
        self.assertEqual(admins, ["alice"])

    def test_create_with_unknown_course(self):
        response = self.client.post(
            self.url, {'participantIds': ["bob"], 'courseId': str(uuid.uuid4())}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': "Course not found"})

    def test_create_requires_participant_ids(self):
        response = self.client.post(self.url, {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data['error'].startswith("participantIds"))

    def test_create_direct_with_three_people(self):
        response = self.client.post(self.url, {'participantIds': ["bob", "carol"]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_inbox_response(self):
        conversation, _ = create_conversation("alice", ["bob"])
        Message.objects.create(conversation=conversation, sender_id="bob", content="Hi Alice")

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 1)
        self.assertFalse(response.data['hasMore'])
        self.assertEqual(response.data['unreadCount'], 1)
        row = response.data['conversations'][0]
        self.assertEqual(row['name'], "Bob Brown")
        self.assertEqual(row['unreadCount'], 1)
        self.assertEqual(row['lastMessage']['content'], "Hi Alice")
        self.assertEqual([p['id'] for p in row['participants']], ["bob"])

    def test_inbox_rejects_bad_page(self):
        response = self.client.get(self.url, {'page': 0})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unread_summary(self):
        conversation, _ = create_conversation("alice", ["bob"])
        Message.objects.create(conversation=conversation, sender_id="bob", content="ping")

        response = self.client.get(reverse('conversations:unread-summary'))

        self.assertEqual(response.data, {
            'unreadCount': 1, 'directUnreadCount': 1, 'announcementUnreadCount': 0,
        })


class ConversationDetailTest(ConversationAPITestCase):
    def setUp(self):
        super().setUp()
        self.group, _ = create_conversation("alice", ["bob", "carol"], is_group=True, name="Team")
        self.direct, _ = create_conversation("alice", ["bob"])

    def test_get_detail(self):
        Message.objects.create(conversation=self.group, sender_id="bob", content="hello")

        response = self.client.get(self.detail_url(self.group))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], "Team")
        self.assertTrue(response.data['isGroup'])
        self.assertEqual(len(response.data['participants']), 3)
        self.assertEqual([m['content'] for m in response.data['messages']], ["hello"])

    def test_outsider_gets_403(self):
        User.objects.create(user_id="mallory")
        self.login("mallory")

        response = self.client.get(self.detail_url(self.group))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, {'error': "Not a participant in this conversation"})

    def test_member_renames_group(self):
        self.login("bob")

        response = self.client.patch(self.detail_url(self.group), {'name': "Renamed"}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], "Renamed")

    def test_rename_direct_rejected(self):
        response = self.client.patch(self.detail_url(self.direct), {'name': "Us"}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_member_cannot_change_membership(self):
        self.login("bob")
        response = self.client.patch(
            self.detail_url(self.group), {'removeParticipants': ["carol"]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_changes_membership(self):
        response = self.client.patch(
            self.detail_url(self.group), {'removeParticipants': ["carol"]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({p['id'] for p in response.data['participants']}, {"alice", "bob"})

    def test_empty_patch_rejected(self):
        response = self.client.patch(self.detail_url(self.group), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': "No valid updates provided"})

    def test_delete_requires_admin(self):
        self.login("bob")
        response = self.client.delete(self.detail_url(self.group))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.login("alice")
        response = self.client.delete(self.detail_url(self.group))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'success': True})
        self.assertFalse(Conversation.objects.filter(pk=self.group.pk).exists())

        response = self.client.get(self.detail_url(self.group))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ConversationMessagesTest(ConversationAPITestCase):
    def setUp(self):
        super().setUp()
        self.conversation, _ = create_conversation("alice", ["bob"])

    def test_send_and_list(self):
        sent = self.client.post(self.messages_url(self.conversation), {'content': "Hello"}, format='json')
        self.assertEqual(sent.status_code, status.HTTP_201_CREATED)
        self.assertEqual(sent.data['status'], MessageStatus.SENT)
        self.assertEqual(sent.data['senderId'], "alice")

        self.login("bob")
        response = self.client.get(self.messages_url(self.conversation))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['nextCursor'])
        self.assertEqual(response.data['messages'][0]['content'], "Hello")
        self.assertEqual(response.data['messages'][0]['status'], MessageStatus.READ)

    def test_save_as_draft(self):
        response = self.client.post(
            self.messages_url(self.conversation), {'content': "later", 'isDraft': True}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['isDraft'])
        self.assertEqual(response.data['status'], MessageStatus.DRAFT)

    def test_blank_message_rejected(self):
        response = self.client.post(self.messages_url(self.conversation), {'content': "   "}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': "Message content is required"})

    def test_cursor_is_returned_for_full_pages(self):
        for index in range(3):
            Message.objects.create(conversation=self.conversation, sender_id="bob", content=f"m{index}")

        response = self.client.get(self.messages_url(self.conversation), {'limit': 2})

        self.assertEqual(len(response.data['messages']), 2)
        self.assertIsInstance(response.data['nextCursor'], str)

    def test_invalid_cursor(self):
        response = self.client.get(self.messages_url(self.conversation), {'cursor': "bogus"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': "Invalid cursor"})

    def test_outsider_cannot_list_or_send(self):
        self.login("carol")
        self.assertEqual(
            self.client.get(self.messages_url(self.conversation)).status_code,
            status.HTTP_403_FORBIDDEN,
        )
        self.assertEqual(
            self.client.post(self.messages_url(self.conversation), {'content': "hi"}, format='json').status_code,
            status.HTTP_403_FORBIDDEN,
        )

    def test_mark_read_and_unread_count(self):
        Message.objects.create(conversation=self.conversation, sender_id="bob", content="one")
        Message.objects.create(conversation=self.conversation, sender_id="bob", content="two")
        count_url = reverse('conversations:conversation-unread-count', args=[self.conversation.id])
        mark_url = reverse('conversations:conversation-mark-read', args=[self.conversation.id])

        self.assertEqual(self.client.get(count_url).data, {'unreadCount': 2})
        self.assertEqual(self.client.post(mark_url).data, {'success': True, 'count': 2})
        self.assertEqual(self.client.get(count_url).data, {'unreadCount': 0})
