from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from .models import User
from .views import LoginView, MeView, RefreshTokenView, RegisterView


class UserRoleTests(TestCase):
    def test_default_role_is_rider(self):
        user = User.objects.create_user(username="ada", password="pass1234")

        self.assertTrue(user.is_rider)
        self.assertFalse(user.is_driver)

    def test_roles_are_a_set(self):
        user = User(username="ada")
        user.set_roles({"DRIVER", "RIDER"})

        self.assertEqual(user.roles, "RIDER,DRIVER")
        self.assertEqual(user.role_set, {"RIDER", "DRIVER"})

    def test_unknown_role_rejected(self):
        with self.assertRaises(ValueError):
            User(username="ada").set_roles({"PILOT"})

    def test_add_role(self):
        user = User(username="ada", roles="DRIVER")
        user.add_role(User.RIDER)

        self.assertTrue(user.has_role(User.RIDER))
        self.assertTrue(user.has_role(User.DRIVER))


class AuthApiTests(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()

    def register(self, **overrides):
        payload = {
            "username": "ada",
            "password": "password123",
            "email": "ada@example.com",
            "full_name": "Ada Obi",
            "roles": ["RIDER", "DRIVER"],
        }
        payload.update(overrides)
        request = self.factory.post("/api/auth/register/", payload, format="json")
        return RegisterView.as_view()(request)

    def test_register_with_roles(self):
        response = self.register()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["user"]["roles"], ["DRIVER", "RIDER"])
        self.assertIn("access", response.data["tokens"])
        self.assertTrue(User.objects.get(username="ada").check_password("password123"))

    def test_register_rejects_admin_role(self):
        response = self.register(roles=["ADMIN"])

        self.assertEqual(response.status_code, 400)

    def test_duplicate_email(self):
        self.register()
        response = self.register(username="ada2")

        self.assertEqual(response.status_code, 400)
        self.assertIn("email", response.data)

    def test_login_and_refresh(self):
        self.register()

        request = self.factory.post("/api/auth/login/", {"username": "ada", "password": "password123"}, format="json")
        response = LoginView.as_view()(request)
        self.assertEqual(response.status_code, 200)

        refresh = response.data["tokens"]["refresh"]
        request = self.factory.post("/api/auth/refresh/", {"refresh": refresh}, format="json")
        response = RefreshTokenView.as_view()(request)
        self.assertEqual(response.status_code, 200)
        self.assertIn("access", response.data)

    def test_login_bad_password(self):
        self.register()

        request = self.factory.post("/api/auth/login/", {"username": "ada", "password": "nope"}, format="json")
        response = LoginView.as_view()(request)

        self.assertEqual(response.status_code, 400)

    def test_refresh_rejects_garbage(self):
        request = self.factory.post("/api/auth/refresh/", {"refresh": "garbage"}, format="json")
        response = RefreshTokenView.as_view()(request)

        self.assertEqual(response.status_code, 401)

    def test_me(self):
        user = User.objects.create_user(username="ada", password="pass1234", roles="DRIVER")

        request = self.factory.get("/api/auth/me/")
        force_authenticate(request, user=user)
        response = MeView.as_view()(request)

        self.assertEqual(response.data["username"], "ada")
        self.assertEqual(response.data["roles"], ["DRIVER"])
