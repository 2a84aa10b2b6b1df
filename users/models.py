from django.db import models


class UserManager(models.Manager):
    def sync_from_claims(self, claims):
        """
        Return the local user for a token subject, creating it on first sight.

        Profile fields come from the identity provider's claims and are only
        used to seed a new row; an existing row is returned unchanged.
        """
        user, _ = self.get_or_create(
            user_id=claims["sub"],
            defaults={
                "first_name": claims.get("given_name", ""),
                "last_name": claims.get("family_name", ""),
                "email": claims.get("email"),
                "role": claims.get("role", User.ROLE_STUDENT),
            },
        )
        return user


class User(models.Model):
    ROLE_STUDENT = "student"
    ROLE_PROFESSOR = "prof"
    ROLE_ADMIN = "admin"
    ROLE_CHOICES = [
        (ROLE_STUDENT, "Student"),
        (ROLE_PROFESSOR, "Professor"),
        (ROLE_ADMIN, "Admin"),
    ]

    user_id = models.CharField(max_length=100, unique=True, primary_key=True)
    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)
    email = models.EmailField(max_length=255, null=True, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_STUDENT)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['last_name', 'first_name'], name='users_name_idx'),
            models.Index(fields=['email'], name='users_email_idx'),
        ]

    # Read by DRF permission classes on the authenticated request user.
    is_authenticated = True
    is_anonymous = False

    @property
    def full_name(self):
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.user_id

    def __str__(self):
        return f"{self.full_name} ({self.user_id})"
