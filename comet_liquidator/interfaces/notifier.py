"""Operator alert channel protocol."""
from typing import Protocol


class Notifier(Protocol):
    """Push liquidation outcomes and cycle failures to an operator.

    Both methods return False instead of raising when delivery fails or a
    message is suppressed.
    """

    async def send_alert(self, message: str, subject: str = "") -> bool: ...

    async def send_log(self, message: str, silent: bool = True) -> bool: ...
