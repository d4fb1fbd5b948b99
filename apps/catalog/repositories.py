"""Read access to catalog assets for the booking core."""

from __future__ import annotations

from shared.infrastructure.db import lock_queryset_if_possible

from .domain import AssetRef, AssetSnapshot, AssetType
from .models import Property, Vehicle


class DjangoAssetCatalog:
    def get(self, ref: AssetRef) -> AssetSnapshot | None:
        if ref.asset_type is AssetType.PROPERTY:
            prop = Property.objects.filter(pk=ref.asset_id).first()
            if prop is None:
                return None
            return AssetSnapshot(
                ref=ref,
                description=prop.title,
                rate=prop.price_per_night,
                flat_fee=prop.cleaning_fee,
                is_active=prop.is_active,
            )

        vehicle = Vehicle.objects.filter(pk=ref.asset_id).first()
        if vehicle is None:
            return None
        return AssetSnapshot(
            ref=ref,
            description=vehicle.display_name,
            rate=vehicle.price_per_day,
            flat_fee=vehicle.service_fee,
            is_active=vehicle.is_active,
        )

    def lock(self, ref: AssetRef) -> bool:
        """Row-lock the asset so confirmations on it are serialised."""
        model = Property if ref.asset_type is AssetType.PROPERTY else Vehicle
        locked = lock_queryset_if_possible(model.objects.filter(pk=ref.asset_id))
        return bool(list(locked.values_list("pk", flat=True)))
