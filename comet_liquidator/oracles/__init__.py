"""Price sources."""
from .chainlink import ChainlinkPriceSource

__all__ = ["ChainlinkPriceSource"]
