from django.contrib import admin
from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = (
        "user_id",
        "first_name",
        "last_name",
        "role",
        "created_at",
    )
    list_filter = ("role",)
    search_fields = ("user_id", "first_name", "last_name", "email")
