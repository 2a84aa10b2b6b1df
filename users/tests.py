from django.test import TestCase

from .models import User
from .serializers import UserSummarySerializer


class UserModelTest(TestCase):
    def test_full_name_falls_back_to_user_id(self):
        named = User.objects.create(user_id="u1", first_name="Ada", last_name="Lovelace")
        anonymous = User.objects.create(user_id="u2")

        self.assertEqual(named.full_name, "Ada Lovelace")
        self.assertEqual(anonymous.full_name, "u2")
        self.assertEqual(str(named), "Ada Lovelace (u1)")

    def test_sync_from_claims_creates_once(self):
        claims = {'sub': "u1", 'given_name': "Ada", 'family_name': "Lovelace", 'role': "prof"}

        first = User.objects.sync_from_claims(claims)
        second = User.objects.sync_from_claims({**claims, 'given_name': "Changed"})

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(second.first_name, "Ada")
        self.assertEqual(second.role, User.ROLE_PROFESSOR)

    def test_sync_from_claims_defaults_to_student(self):
        user = User.objects.sync_from_claims({'sub': "u3"})

        self.assertEqual(user.role, User.ROLE_STUDENT)
        self.assertIsNone(user.email)

    def test_summary_serializer_uses_camel_case(self):
        user = User.objects.create(user_id="u1", first_name="Ada", last_name="Lovelace")

        data = UserSummarySerializer(user).data

        self.assertEqual(data, {'id': "u1", 'firstName': "Ada", 'lastName': "Lovelace", 'role': "student"})
