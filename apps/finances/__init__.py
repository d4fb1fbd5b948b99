"""Finances app: payments recorded from processor callbacks."""
