import logging

import jwt
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

from users.models import User

from .jwt_utils import validate_jwt_token

logger = logging.getLogger(__name__)


class BearerJWTAuthentication(BaseAuthentication):
    keyword = "Bearer"

    def authenticate(self, request):
        """
        Authenticate a request using a JWT provided in the Authorization header.

        Returns ``None`` when the header is absent so that the permission layer
        answers 401. A present but malformed or invalid token fails right away.
        On success the local User row for the token subject is returned,
        created from the token's profile claims the first time it is seen.

        Returns:
            tuple: ``(user, claims)``

        Raises:
            AuthenticationFailed: If the header is not "Bearer <token>" or the token does not verify.
        """
        auth_header = request.headers.get("Authorization", "")
        if not auth_header:
            return None

        parts = auth_header.split()
        if len(parts) != 2 or parts[0] != self.keyword:
            raise AuthenticationFailed("Wrong token format. Expected 'Bearer token'")

        try:
            payload = validate_jwt_token(parts[1])
        except jwt.InvalidTokenError as e:
            logger.warning("Rejected bearer token", extra={"error": str(e)})
            raise AuthenticationFailed(str(e))

        user = User.objects.sync_from_claims(payload)
        return (user, payload)

    def authenticate_header(self, request):
        return self.keyword
