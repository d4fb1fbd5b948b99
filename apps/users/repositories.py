"""Store access for users, returning typed records instead of model rows."""

from __future__ import annotations

from dataclasses import dataclass

from django.db import transaction

from .models import CustomUser


@dataclass(frozen=True)
class UserRecord:
    id: int
    email: str | None
    phone: str | None
    full_name: str
    role: str
    is_phone_verified: bool

    @classmethod
    def from_model(cls, user: CustomUser) -> "UserRecord":
        return cls(
            id=user.pk,
            email=user.email or None,
            phone=user.phone or None,
            full_name=user.full_name,
            role=user.role,
            is_phone_verified=user.is_phone_verified,
        )


class DjangoUserRepository:
    """Lookups expect already normalised emails (lower case) and phones."""

    def get(self, user_id: int) -> UserRecord | None:
        user = CustomUser.objects.filter(pk=user_id).first()
        return UserRecord.from_model(user) if user else None

    def get_by_email(self, email: str) -> UserRecord | None:
        user = CustomUser.objects.filter(email__iexact=email).first()
        return UserRecord.from_model(user) if user else None

    def get_by_phone(self, phone: str) -> UserRecord | None:
        user = CustomUser.objects.filter(phone=phone).first()
        return UserRecord.from_model(user) if user else None

    def create_customer(self, *, full_name: str, email: str | None, phone: str | None) -> UserRecord:
        # Savepoint so a unique violation does not poison an outer transaction.
        with transaction.atomic():
            user = CustomUser.objects.create_user(
                email=email,
                phone=phone,
                full_name=full_name,
                role=CustomUser.RoleChoices.CUSTOMER,
            )
        return UserRecord.from_model(user)

    def backfill_phone(self, user_id: int, phone: str) -> bool:
        """Set the phone only where it is still empty."""
        return bool(
            CustomUser.objects.filter(pk=user_id, phone__isnull=True).update(phone=phone)
        )

    def backfill_email(self, user_id: int, email: str) -> bool:
        return bool(
            CustomUser.objects.filter(pk=user_id, email__isnull=True).update(email=email)
        )

    def staff_ids(self) -> list[int]:
        """Managers and admins who receive booking notifications."""
        return list(
            CustomUser.objects.filter(
                is_active=True,
                role__in=[CustomUser.RoleChoices.MANAGER, CustomUser.RoleChoices.ADMIN],
            ).values_list("pk", flat=True)
        )
