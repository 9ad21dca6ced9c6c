"""Tests for the email-identified user model."""

import uuid

import pytest
from django.contrib.auth import get_user_model

User = get_user_model()


@pytest.mark.django_db
class TestUserManager:

    def test_create_user_normalizes_email(self):
        user = User.objects.create_user(email="Someone@EXAMPLE.com", password="pw")

        assert user.email == "Someone@example.com"
        assert isinstance(user.pk, uuid.UUID)
        assert user.check_password("pw")
        assert str(user) == "Someone@example.com"
        assert not user.is_staff

    def test_create_user_requires_email(self):
        with pytest.raises(ValueError):
            User.objects.create_user(email="", password="pw")

    def test_create_superuser(self):
        admin = User.objects.create_superuser(email="admin@example.com", password="pw")

        assert admin.is_staff
        assert admin.is_superuser

    def test_create_superuser_rejects_non_staff(self):
        with pytest.raises(ValueError):
            User.objects.create_superuser(email="admin@example.com", password="pw", is_staff=False)

    def test_profile_fields_default_blank(self):
        user = User.objects.create_user(email="plain@example.com", password="pw")

        assert user.phone == ""
        assert user.default_address == ""
        assert user.username is None
