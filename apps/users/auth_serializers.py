"""Serializers for guest authentication flows."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore


class PhoneSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=32)


class VerifyOtpSerializer(PhoneSerializer):
    code = serializers.CharField(max_length=6, min_length=6)
