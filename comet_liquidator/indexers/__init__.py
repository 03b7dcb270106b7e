"""Position index clients, one per backing index kind."""
from __future__ import annotations

from typing import Any, Callable

from ..config import IndexConfig
from .static import StaticPositionIndex
from .subgraph import AaveSubgraphIndex, CometSubgraphIndex

# Registry of index factories keyed by configured kind.
INDEX_FACTORIES: dict[str, Callable[[IndexConfig], Any]] = {
    "comet_subgraph": CometSubgraphIndex,
    "aave_subgraph": AaveSubgraphIndex,
    "static": StaticPositionIndex,
}


def build_index(config: IndexConfig) -> Any:
    """Instantiate the index client for ``config.kind``."""
    factory = INDEX_FACTORIES.get(config.kind)
    if factory is None:
        raise ValueError(f"Unknown index kind '{config.kind}'")
    return factory(config)


__all__ = [
    "AaveSubgraphIndex",
    "CometSubgraphIndex",
    "INDEX_FACTORIES",
    "StaticPositionIndex",
    "build_index",
]
