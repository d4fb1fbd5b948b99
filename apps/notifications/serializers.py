"""Serializers for notifications."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            'id',
            'title',
            'message',
            'notification_type',
            'related_booking',
            'is_read',
            'created_at',
        ]
        read_only_fields = ['title', 'message', 'notification_type', 'related_booking', 'created_at']
