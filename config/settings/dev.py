"""Development settings for the booking portal.

This module extends the base settings with development specific
configuration, such as enabling debug, allowing all hosts and printing
WhatsApp messages to the console instead of sending them. Do not use these
settings in production!
"""

from .base import *  # noqa: F401,F403

# Enable debug mode for development
DEBUG = True

# Allow all hosts in development
ALLOWED_HOSTS = ['*']

# Print outbound WhatsApp messages unless a real backend is configured
WHATSAPP_BACKEND = get_env('WHATSAPP_BACKEND', 'apps.notifications.messaging.ConsoleMessenger')  # noqa: F405
