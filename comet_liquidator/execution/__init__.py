"""Execution submitters: sign-and-send or simulate-only."""
from .submitter import SimulatingSubmitter, Web3Submitter

__all__ = ["SimulatingSubmitter", "Web3Submitter"]
