"""
Contract multipliers (point values) for futures roots.

Micro roots match anywhere in the symbol ("MESZ4", "mes") so they are checked
before the standard roots, which match the whole symbol only ("ES" but not
"TESLA"). Anything else trades at multiplier 1.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Mapping, Optional

from trade_journal.utils.logger import get_logger

logger = get_logger(__name__)

# (root, multiplier); order matters, first hit wins
MICRO_CONTRACTS: tuple[tuple[str, float], ...] = (
    ("MES", 5.0),
    ("MNQ", 2.0),
)

STANDARD_CONTRACTS: dict[str, float] = {
    "ES": 50.0,
    "NQ": 20.0,
}

DEFAULT_MULTIPLIER = 1.0


def contract_multiplier(symbol: str, overrides: Optional[Mapping[str, float]] = None) -> float:
    """Point value for `symbol`. Overrides are exact (case-insensitive) root matches."""
    s = (symbol or "").strip().upper()
    if overrides:
        for root, value in overrides.items():
            if root.strip().upper() == s:
                return float(value)
    return _builtin_multiplier(s)


@lru_cache(maxsize=512)
def _builtin_multiplier(s: str) -> float:
    for root, value in MICRO_CONTRACTS:
        if root in s:
            return value
    if s in STANDARD_CONTRACTS:
        return STANDARD_CONTRACTS[s]
    # cached, so this fires once per symbol
    logger.warning("unmapped_contract_symbol", symbol=s, multiplier=DEFAULT_MULTIPLIER)
    return DEFAULT_MULTIPLIER
