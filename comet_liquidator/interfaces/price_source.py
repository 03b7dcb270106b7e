"""Price source protocol: unit prices for profitability checks."""
from decimal import Decimal
from typing import Protocol


class PriceSource(Protocol):
    """Return an asset's unit price, or None when no feed is configured."""

    async def get_price(self, asset: str) -> Decimal | None: ...
