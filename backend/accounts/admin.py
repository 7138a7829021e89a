from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from accounts.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin panel for custom User model"""

    list_display = [
        "username",
        "email",
        "roles",
        "phone_number",
        "rating",
        "total_ratings",
        "is_verified",
        "is_active",
    ]

    list_filter = [
        "is_verified",
        "is_active",
        "is_staff",
        "date_joined",
    ]

    search_fields = [
        "username",
        "email",
        "full_name",
        "phone_number",
    ]

    ordering = ("username",)

    # Extend default Django UserAdmin fieldsets
    fieldsets = BaseUserAdmin.fieldsets + (
        (
            "Commuter Profile",
            {
                "fields": (
                    "roles",
                    "full_name",
                    "phone_number",
                    "profile_image_url",
                    "is_verified",
                )
            },
        ),
        (
            "Ratings",
            {
                "fields": ("rating", "total_ratings"),
            },
        ),
    )

    readonly_fields = ("rating", "total_ratings")

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        (
            "Commuter Profile",
            {
                "fields": (
                    "roles",
                    "full_name",
                    "phone_number",
                )
            },
        ),
    )
