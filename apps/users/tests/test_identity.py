"""Tests for mapping guest contact details onto users."""

from __future__ import annotations

from unittest.mock import patch

from django.db import IntegrityError
from django.test import TestCase

from apps.users.identity import GuestIdentityResolver
from apps.users.models import CustomUser
from apps.users.repositories import DjangoUserRepository
from shared.domain.errors import ValidationError


class GuestIdentityResolverTests(TestCase):
    def setUp(self) -> None:
        self.resolver = GuestIdentityResolver(DjangoUserRepository())

    def test_new_guest_becomes_customer(self) -> None:
        user_id = self.resolver.resolve("Ada Guest", "+1 555 123 4567", "Ada@Example.com")

        user = CustomUser.objects.get(pk=user_id)
        self.assertEqual(user.email, "ada@example.com")
        self.assertEqual(user.phone, "+15551234567")
        self.assertEqual(user.full_name, "Ada Guest")
        self.assertEqual(user.role, CustomUser.RoleChoices.CUSTOMER)
        self.assertFalse(user.is_phone_verified)

    def test_same_guest_resolves_to_same_user(self) -> None:
        first = self.resolver.resolve("Ada", "+15551234567", "ada@example.com")
        second = self.resolver.resolve("Ada", "5551234567", "ADA@example.com")

        self.assertEqual(first, second)
        self.assertEqual(CustomUser.objects.count(), 1)

    def test_phone_only_guest(self) -> None:
        user_id = self.resolver.resolve("Ada", phone="+15551234567")

        self.assertIsNone(CustomUser.objects.get(pk=user_id).email)

    def test_email_match_backfills_missing_phone(self) -> None:
        user = CustomUser.objects.create_user(email="ada@example.com")

        user_id = self.resolver.resolve("Ada", "+15551234567", "ada@example.com")

        self.assertEqual(user_id, user.pk)
        user.refresh_from_db()
        self.assertEqual(user.phone, "+15551234567")

    def test_phone_match_backfills_missing_email(self) -> None:
        user = CustomUser.objects.create_user(phone="+15551234567")

        user_id = self.resolver.resolve("Ada", "+15551234567", "ada@example.com")

        self.assertEqual(user_id, user.pk)
        user.refresh_from_db()
        self.assertEqual(user.email, "ada@example.com")

    def test_existing_phone_is_not_overwritten(self) -> None:
        user = CustomUser.objects.create_user(email="ada@example.com", phone="+15550000000")

        self.resolver.resolve("Ada", "+15551234567", "ada@example.com")

        user.refresh_from_db()
        self.assertEqual(user.phone, "+15550000000")

    def test_email_wins_when_contacts_match_different_users(self) -> None:
        by_email = CustomUser.objects.create_user(email="ada@example.com")
        by_phone = CustomUser.objects.create_user(phone="+15551234567")

        user_id = self.resolver.resolve("Ada", "+15551234567", "ada@example.com")

        self.assertEqual(user_id, by_email.pk)
        by_email.refresh_from_db()
        by_phone.refresh_from_db()
        self.assertIsNone(by_email.phone)
        self.assertEqual(by_phone.phone, "+15551234567")
        self.assertEqual(CustomUser.objects.count(), 2)

    def test_contact_is_required(self) -> None:
        with self.assertRaises(ValidationError):
            self.resolver.resolve("Ada", phone="  ", email="")

    def test_invalid_phone_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.resolver.resolve("Ada", phone="123")

    def test_lost_creation_race_returns_winner(self) -> None:
        winner = CustomUser.objects.create_user(email="ada@example.com")
        repo = self.resolver.users

        with patch.object(repo, "get_by_email", side_effect=[None, repo.get_by_email("ada@example.com")]), \
                patch.object(repo, "create_customer", side_effect=IntegrityError("duplicate")):
            user_id = self.resolver.resolve("Ada", email="ada@example.com")

        self.assertEqual(user_id, winner.pk)
