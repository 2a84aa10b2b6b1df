"""
JWT utilities for the coursehub application.

Tokens are issued by the external identity provider; this module decodes
them and can mint equivalent tokens for tests and local development.
"""

import time

import jwt
from django.conf import settings


class JWTManager:
    """Signs and verifies bearer tokens with the shared identity-provider secret."""

    def _get_secret(self):
        return getattr(settings, 'JWT_SECRET', 'test_jwt_secret_key')

    def _get_algorithm(self):
        return getattr(settings, 'JWT_ALGORITHM', 'HS256')

    def generate_token(self, user_id, expires_in_hours=24, **claims):
        """
        Mint a token shaped like the identity provider's.

        Args:
            user_id (str): Subject of the token
            expires_in_hours (int): Lifetime; negative values produce an expired token
            **claims: Profile claims (given_name, family_name, email, role)

        Returns:
            str: Encoded token
        """
        now = int(time.time())
        payload = {
            'sub': user_id,
            'iat': now,
            'exp': now + int(expires_in_hours * 3600),
        }
        audience = getattr(settings, 'JWT_AUDIENCE', None)
        issuer = getattr(settings, 'JWT_ISSUER', None)
        if audience:
            payload['aud'] = audience
        if issuer:
            payload['iss'] = issuer
        payload.update(claims)

        return jwt.encode(payload, self._get_secret(), algorithm=self._get_algorithm())

    def validate_token(self, token):
        """
        Verify signature, expiry and (when configured) audience and issuer.

        Raises:
            jwt.InvalidTokenError: If token is invalid, expired or has no subject
        """
        audience = getattr(settings, 'JWT_AUDIENCE', None)
        issuer = getattr(settings, 'JWT_ISSUER', None)
        try:
            payload = jwt.decode(
                token,
                self._get_secret(),
                algorithms=[self._get_algorithm()],
                audience=audience,
                issuer=issuer,
                options={'verify_aud': audience is not None},
            )
        except jwt.ExpiredSignatureError:
            raise jwt.InvalidTokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise jwt.InvalidTokenError(f"Invalid token: {str(e)}")

        if not payload.get('sub'):
            raise jwt.InvalidTokenError("Invalid token: missing subject")
        return payload


_jwt_manager = None


def _get_jwt_manager():
    """Get the global JWT manager instance, creating it if needed."""
    global _jwt_manager
    if _jwt_manager is None:
        _jwt_manager = JWTManager()
    return _jwt_manager


def generate_test_token(user_id, expires_in_hours=24, **claims):
    """Generate a test JWT token for the given user ID."""
    return _get_jwt_manager().generate_token(user_id, expires_in_hours, **claims)


def validate_jwt_token(token):
    """Validate a JWT token and return the payload."""
    return _get_jwt_manager().validate_token(token)
