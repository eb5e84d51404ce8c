"""
Price Refresh Agent

DESIGN DECISION: Gemini is used as a best-effort price source, and
its answer is treated as untrusted free text.

CRITICAL BOUNDARIES:
- CAN: propose a latest price per ticker symbol
- CANNOT: add, remove or rename holdings
- CANNOT: change anything but current_price / last_updated
- MUST: leave the holdings unchanged on any failure

The parse step is isolated in parse_price_map() so the rest of the
app only ever sees a validated {symbol: Decimal} mapping.
"""

import json
import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Sequence

import google.generativeai as genai
import structlog

from wealthflow.config import get_settings
from wealthflow.config.settings import GeminiSettings
from wealthflow.models.finance import StockHolding


logger = structlog.get_logger(__name__)

# Lets the model look up live quotes instead of answering from memory
SEARCH_TOOL = "google_search_retrieval"


class PriceParseError(ValueError):
    """The model's answer did not contain a usable JSON object."""
    pass


def parse_price_map(text: str) -> dict[str, Decimal]:
    """
    Extract a {symbol: price} mapping from free-form model output.

    Takes everything from the first "{" to the last "}" (so markdown
    code fences around the JSON are fine) and keeps only entries whose
    value is a non-negative real number. Strings, booleans and nulls
    are dropped.

    Raises:
        PriceParseError: If no JSON object can be found or decoded
    """
    text = text or ""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise PriceParseError("No JSON object found in model response")

    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise PriceParseError(f"Invalid JSON in model response: {e}")

    if not isinstance(data, dict):
        raise PriceParseError("Model response JSON is not an object")

    prices = {}
    for symbol, value in data.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if isinstance(value, float) and not math.isfinite(value):
            continue
        if value < 0:
            continue
        prices[str(symbol)] = Decimal(str(value))
    return prices


def apply_prices(
    holdings: Sequence[StockHolding],
    prices: dict[str, Decimal],
    updated_at: Optional[datetime] = None,
) -> list[StockHolding]:
    """Copy of holdings with matched symbols repriced; others untouched."""
    updated_at = updated_at or datetime.now(timezone.utc)
    return [
        h.with_price(prices[h.symbol], updated_at) if h.symbol in prices else h
        for h in holdings
    ]


def build_price_prompt(symbols: list[str]) -> str:
    return f"""I need the current stock market price for the following symbols: {', '.join(symbols)}.
Please search for the latest price for each.

IMPORTANT: Return the output strictly as a JSON object where the keys are the stock symbols and the values are the numeric prices (numbers only, no currency symbols).
Example format:
{{
  "2330.TW": 950.5,
  "AAPL": 185.2
}}
If you cannot find a specific stock, do not include it in the JSON."""


class PriceRefreshAgent:
    """
    Refreshes holding prices through Gemini.

    A model object can be injected (anything with an async
    generate_content_async(prompt, tools=...) returning an object
    with .text);
    otherwise one is built from GeminiSettings when an API key is set.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Any = None,
    ):
        self._settings = settings or get_settings().gemini
        self._model = model
        if self._model is None and self._settings.is_configured:
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    @property
    def is_available(self) -> bool:
        return self._model is not None

    async def fetch_prices(self, symbols: list[str]) -> dict[str, Decimal]:
        """
        Ask the model for prices and parse its answer.

        Raises whatever the model call or parser raises; use
        refresh_prices() for the never-failing variant.
        """
        if self._model is None:
            raise RuntimeError("No Gemini API key configured")

        response = await self._model.generate_content_async(
            build_price_prompt(symbols),
            tools=SEARCH_TOOL,
        )
        return parse_price_map(response.text or "")

    async def refresh_prices(self, holdings: Sequence[StockHolding]) -> list[StockHolding]:
        """
        Return holdings with refreshed prices where the model knew them.

        Never raises: without an API key, on network errors or on an
        unparsable answer, the input holdings come back unchanged.
        """
        holdings = list(holdings)
        if not holdings:
            return holdings

        if self._model is None:
            logger.warning("price_refresh_skipped", reason="no_api_key")
            return holdings

        symbols = list(dict.fromkeys(h.symbol for h in holdings))
        try:
            prices = await self.fetch_prices(symbols)
        except Exception as e:
            logger.error("price_refresh_failed", symbols=symbols, error=str(e))
            return holdings

        logger.info(
            "price_refresh_completed",
            requested=len(symbols),
            matched=len([s for s in symbols if s in prices]),
        )
        return apply_prices(holdings, prices)
