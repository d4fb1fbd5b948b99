"""Users app package.

Guests, managers and admins of the booking portal. Guests are created
lazily from the phone/email they book with and sign in through a WhatsApp
OTP or a magic dashboard link. Use ``apps.users.models.CustomUser`` as the
AUTH_USER_MODEL throughout the project.
"""
