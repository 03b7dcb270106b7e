"""Execution submitter protocol: sign and send, or simulate."""
from typing import Protocol

from ..config import GasPolicy
from ..models import ContractCall


class ExecutionSubmitter(Protocol):
    """Turn a contract call into a confirmed (or simulated) transaction."""

    @property
    def address(self) -> str: ...

    async def submit(self, call: ContractCall, gas: GasPolicy) -> bool: ...
