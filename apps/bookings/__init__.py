"""Bookings app package.

This app holds the booking ledger: availability checks, pending booking
creation, checkout hand-off and the confirmation that happens when the
payment callback arrives. No two confirmed bookings of an asset overlap;
that is enforced when a booking is confirmed, under row locks.
"""
