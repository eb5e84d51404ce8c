"""Tests for the Gemini price refresh adapter."""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from wealthflow.agents import (
    PriceParseError,
    PriceRefreshAgent,
    SEARCH_TOOL,
    apply_prices,
    build_price_prompt,
    parse_price_map,
)
from wealthflow.models.finance import StockHolding


@pytest.fixture
def holdings():
    return [
        StockHolding(id="s1", symbol="2330.TW", shares=Decimal("10"), current_price=Decimal("900")),
        StockHolding(id="s2", symbol="AAPL", shares=Decimal("5"), current_price=Decimal("180")),
    ]


class TestParsePriceMap:
    """Tests for scanning model output for a price object."""

    def test_plain_json(self):
        assert parse_price_map('{"AAPL": 185.2}') == {"AAPL": Decimal("185.2")}

    def test_json_inside_markdown_fence(self):
        text = 'Here you go:\n```json\n{"2330.TW": 950.5, "AAPL": 185}\n```\nThanks.'
        assert parse_price_map(text) == {
            "2330.TW": Decimal("950.5"),
            "AAPL": Decimal("185"),
        }

    def test_non_numeric_values_dropped(self):
        text = '{"AAPL": "185.2", "MSFT": null, "GOOG": true, "TSLA": 240.1}'
        assert parse_price_map(text) == {"TSLA": Decimal("240.1")}

    def test_negative_values_dropped(self):
        assert parse_price_map('{"AAPL": -1, "MSFT": 0}') == {"MSFT": Decimal("0")}

    def test_no_object_raises(self):
        with pytest.raises(PriceParseError):
            parse_price_map("Sorry, I could not find those prices.")

    def test_invalid_json_raises(self):
        with pytest.raises(PriceParseError):
            parse_price_map("{AAPL: 185}")

    def test_object_inside_array_is_extracted(self):
        assert parse_price_map('[{"AAPL": 1}]') == {"AAPL": Decimal("1")}

    def test_bare_array_raises(self):
        with pytest.raises(PriceParseError):
            parse_price_map("[185.2, 190]")

    def test_empty_text_raises(self):
        with pytest.raises(PriceParseError):
            parse_price_map("")


class TestApplyPrices:
    """Tests for merging a price map into holdings."""

    def test_only_matched_symbols_change(self, holdings):
        stamp = datetime(2024, 5, 1, tzinfo=timezone.utc)
        result = apply_prices(holdings, {"AAPL": Decimal("190")}, stamp)

        assert result[0] is holdings[0]
        assert result[1].current_price == Decimal("190")
        assert result[1].last_updated == stamp
        assert result[1].id == "s2"

    def test_prompt_lists_symbols(self):
        prompt = build_price_prompt(["2330.TW", "AAPL"])
        assert "2330.TW, AAPL" in prompt
        assert "JSON" in prompt


class TestPriceRefreshAgent:
    """Tests for the never-failing refresh."""

    def test_refresh_updates_matched_holdings(self, holdings, gemini_settings, make_model):
        model = make_model(text='```json\n{"AAPL": 185.2}\n```')
        agent = PriceRefreshAgent(gemini_settings, model=model)

        result = asyncio.run(agent.refresh_prices(holdings))

        assert result[0] is holdings[0]
        assert result[1].current_price == Decimal("185.2")
        assert result[1].last_updated >= holdings[1].last_updated
        assert "2330.TW, AAPL" in model.prompts[0]

    def test_model_is_asked_to_search(self, holdings, gemini_settings, make_model):
        model = make_model(text='{"AAPL": 185.2}')
        agent = PriceRefreshAgent(gemini_settings, model=model)

        asyncio.run(agent.refresh_prices(holdings))

        assert model.tools == [SEARCH_TOOL]

    def test_unparsable_response_returns_input(self, holdings, gemini_settings, make_model):
        """A response with no JSON object leaves every holding unchanged."""
        agent = PriceRefreshAgent(gemini_settings, model=make_model(text="I don't know."))

        result = asyncio.run(agent.refresh_prices(holdings))

        assert result == holdings

    def test_model_error_returns_input(self, holdings, gemini_settings, make_model):
        agent = PriceRefreshAgent(gemini_settings, model=make_model(error=TimeoutError("slow")))

        result = asyncio.run(agent.refresh_prices(holdings))

        assert result == holdings

    def test_no_api_key_returns_input(self, holdings, gemini_settings):
        agent = PriceRefreshAgent(gemini_settings)

        assert agent.is_available is False
        assert asyncio.run(agent.refresh_prices(holdings)) == holdings

    def test_empty_holdings_skip_model(self, gemini_settings, make_model):
        model = make_model(text='{"AAPL": 1}')
        agent = PriceRefreshAgent(gemini_settings, model=model)

        assert asyncio.run(agent.refresh_prices([])) == []
        assert model.prompts == []

    def test_duplicate_symbols_asked_once(self, gemini_settings, make_model):
        model = make_model(text='{"AAPL": 200}')
        agent = PriceRefreshAgent(gemini_settings, model=model)
        holdings = [StockHolding(symbol="AAPL"), StockHolding(symbol="aapl")]

        result = asyncio.run(agent.refresh_prices(holdings))

        assert "following symbols: AAPL." in model.prompts[0]
        assert all(h.current_price == Decimal("200") for h in result)

    def test_fetch_prices_without_model_raises(self, gemini_settings):
        with pytest.raises(RuntimeError):
            asyncio.run(PriceRefreshAgent(gemini_settings).fetch_prices(["AAPL"]))
