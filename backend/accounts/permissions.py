# accounts/permissions.py
from rest_framework.permissions import BasePermission

from .models import User


class HasRole(BasePermission):
    """
    Allows access only to authenticated users holding ``required_role``.
    Keeps role check logic centralized.
    """
    required_role = None
    message = "You do not have the required role for this action."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return user.has_role(self.required_role)


class IsRider(HasRole):
    required_role = User.RIDER
    message = "Only riders can perform this action."


class IsDriver(HasRole):
    required_role = User.DRIVER
    message = "Only drivers can perform this action."
