"""AI Agents package."""

from wealthflow.agents.price_agent import (
    PriceParseError,
    PriceRefreshAgent,
    SEARCH_TOOL,
    apply_prices,
    build_price_prompt,
    parse_price_map,
)

__all__ = [
    "PriceParseError",
    "PriceRefreshAgent",
    "SEARCH_TOOL",
    "apply_prices",
    "build_price_prompt",
    "parse_price_map",
]
