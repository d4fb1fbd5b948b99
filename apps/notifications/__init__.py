"""Notifications app: manager inbox notifications and WhatsApp messaging."""
