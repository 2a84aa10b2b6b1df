from rest_framework import serializers

from .models import User


class UserSummarySerializer(serializers.ModelSerializer):
    id = serializers.CharField(source='user_id', read_only=True)
    firstName = serializers.CharField(source='first_name', read_only=True)
    lastName = serializers.CharField(source='last_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'firstName', 'lastName', 'role']
        read_only_fields = fields
