"""Guest identity resolution.

Maps the phone and/or email a guest books with onto exactly one user,
creating the user on first contact and filling in whichever contact
channel an existing user was missing.
"""

from __future__ import annotations

import logging

from django.db import IntegrityError

from shared.domain.errors import ValidationError
from shared.domain.phone import normalize_phone

from .repositories import DjangoUserRepository, UserRecord

logger = logging.getLogger(__name__)


class GuestIdentityResolver:
    def __init__(self, users: DjangoUserRepository):
        self.users = users

    def resolve(self, name: str, phone: str | None = None, email: str | None = None) -> int:
        email = email.strip().lower() if email and email.strip() else None
        phone = normalize_phone(phone) if phone and phone.strip() else None
        if not email and not phone:
            raise ValidationError("Either phone number or email is required")

        user = self._match(phone, email)
        if user is not None:
            return user.id

        try:
            created = self.users.create_customer(full_name=(name or "").strip(), email=email, phone=phone)
        except IntegrityError:
            # A concurrent request created the same guest first.
            user = self._match(phone, email)
            if user is None:
                raise
            return user.id
        logger.info(f"Created customer {created.id} for new guest")
        return created.id

    def _match(self, phone: str | None, email: str | None) -> UserRecord | None:
        if email:
            user = self.users.get_by_email(email)
            if user is not None:
                if phone and not user.phone:
                    self._backfill_phone(user, phone)
                elif phone and user.phone != phone:
                    logger.info(f"Guest phone differs from user {user.id}; email match wins")
                return user

        if phone:
            user = self.users.get_by_phone(phone)
            if user is not None:
                if email and not user.email:
                    self.users.backfill_email(user.id, email)
                return user
        return None

    def _backfill_phone(self, user: UserRecord, phone: str) -> None:
        owner = self.users.get_by_phone(phone)
        if owner is not None:
            # Two existing users are never merged.
            logger.warning(f"Phone already belongs to user {owner.id}; not backfilling user {user.id}")
            return
        self.users.backfill_phone(user.id, phone)
