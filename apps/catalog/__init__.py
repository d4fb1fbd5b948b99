"""Catalog app: the rentable assets (properties and vehicles).

Listing and browsing live elsewhere; the booking core only reads asset
snapshots through ``apps.catalog.repositories``.
"""
