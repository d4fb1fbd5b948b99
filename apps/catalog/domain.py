"""Asset references and snapshots shared with the booking core."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class AssetType(str, Enum):
    PROPERTY = "property"
    VEHICLE = "vehicle"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class AssetRef:
    asset_type: AssetType
    asset_id: int

    def __str__(self) -> str:
        return f"{self.asset_type.value}:{self.asset_id}"


@dataclass(frozen=True)
class AssetSnapshot:
    """
    Read-only view of an asset at booking time.

    ``rate`` is charged per night (property) or per day (vehicle);
    ``flat_fee`` is the one-off cleaning or service fee.
    """
    ref: AssetRef
    description: str
    rate: Decimal
    flat_fee: Decimal
    is_active: bool
