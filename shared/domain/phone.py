"""Phone number normalisation to the canonical ``+<country><digits>`` form."""

from __future__ import annotations

import re

from django.conf import settings

from shared.domain.errors import ValidationError

_SEPARATORS = re.compile(r"[\s\-().]")


def normalize_phone(raw: str, default_country_code: str | None = None) -> str:
    """
    Canonicalise a phone number.

    Separators are stripped. Numbers without a leading ``+`` are treated as
    national numbers: ten digits get the default country code prepended, and
    numbers already starting with the country code just get the ``+``.
    """
    if not raw or not str(raw).strip():
        raise ValidationError("Phone number is required")

    country_code = default_country_code or getattr(settings, "DEFAULT_PHONE_COUNTRY_CODE", "1")
    cleaned = _SEPARATORS.sub("", str(raw).strip())
    if cleaned.startswith("whatsapp:"):
        cleaned = cleaned[len("whatsapp:"):]
    if cleaned.startswith("00"):
        cleaned = "+" + cleaned[2:]

    if cleaned.startswith("+"):
        digits = cleaned[1:]
    elif len(cleaned) == 10:
        digits = f"{country_code}{cleaned}"
    else:
        digits = cleaned

    if not digits.isdigit() or not 8 <= len(digits) <= 15:
        raise ValidationError("Invalid phone number")
    return f"+{digits}"
