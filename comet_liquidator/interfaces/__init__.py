"""Protocol interfaces for the liquidator's external collaborators."""
from .chain import CometReader
from .liquidatable_oracle import LiquidatableOracle
from .notifier import Notifier
from .position_index import BorrowerPositionSource, PositionIndexClient
from .price_source import PriceSource
from .submitter import ExecutionSubmitter

__all__ = [
    "BorrowerPositionSource",
    "CometReader",
    "ExecutionSubmitter",
    "LiquidatableOracle",
    "Notifier",
    "PositionIndexClient",
    "PriceSource",
]
