"""Booking price quotes."""

from shared.domain.value_objects import DateRange, Money

from apps.catalog.domain import AssetSnapshot


def quote(asset: AssetSnapshot, dates: DateRange, currency: str) -> Money:
    """Nights (or days) times the asset rate, plus its flat cleaning/service fee."""
    return Money(asset.rate, currency) * len(dates) + Money(asset.flat_fee, currency)
