"""
Gemini Client Tests.

============================================================
PURPOSE
============================================================
Tests for the inference client with a mocked HTTP client.

TEST CATEGORIES:
- Generate: URL, body, text extraction, failures
- Model listing: generateContent filter
- Prices: symbol mapping and static provider

============================================================
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from core.config import InferenceConfig
from core.exceptions import MalformedResponseError, NoDataError, NotConfiguredError
from risk_analysis import (
    GeminiClient,
    StaticPriceProvider,
    coin_id_for,
    extract_text,
)


def make_client(response=None, api_key="g-key"):
    http = MagicMock()
    http.post_json = AsyncMock(return_value=response)
    http.get_json = AsyncMock(return_value=response)
    config = InferenceConfig(api_key=api_key, base_url="https://gl.example")
    return GeminiClient(config, http=http), http


def answer(*texts):
    return {"candidates": [{"content": {"parts": [{"text": t} for t in texts]}}]}


# ============================================================
# GENERATE TESTS
# ============================================================

class TestGenerate:
    """Tests for generate()."""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        """Test URL and body of the generate call."""
        client, http = make_client(answer("hello"))

        text = await client.generate("gemini-2.0-flash", "prompt text")

        assert text == "hello"
        args, kwargs = http.post_json.call_args
        assert args[0] == (
            "https://gl.example/v1beta/models/gemini-2.0-flash:generateContent?key=g-key"
        )
        assert args[1] == {"contents": [{"role": "user", "parts": [{"text": "prompt text"}]}]}
        assert kwargs["source_name"] == "gemini"

    def test_models_prefix_kept(self):
        """Test an id already carrying models/ is not prefixed twice."""
        client, _ = make_client()
        assert "/v1beta/models/gemini-pro:generateContent" in client.generate_url("models/gemini-pro")

    def test_extract_first_part(self):
        """Test the first part's text is preferred."""
        assert extract_text(answer("first", "second")) == "first"

    def test_extract_joins_parts(self):
        """Test parts are joined when the first has no text."""
        data = {"candidates": [{"content": {"parts": [{"inlineData": {}}, {"text": "a"}, {"text": "b"}]}}]}
        assert extract_text(data) == "a\nb"

    @pytest.mark.parametrize("data", [None, {}, {"candidates": []}, {"candidates": [{"content": {}}]}])
    def test_extract_nothing(self, data):
        """Test missing structure yields empty text."""
        assert extract_text(data) == ""

    @pytest.mark.asyncio
    async def test_empty_response(self):
        """Test empty text raises MalformedResponseError."""
        client, _ = make_client(answer("   "))

        with pytest.raises(MalformedResponseError, match="Empty Gemini response"):
            await client.generate("gemini-2.0-flash", "p")

    @pytest.mark.asyncio
    async def test_missing_key(self):
        """Test no API key raises NotConfiguredError before any call."""
        client, http = make_client(answer("x"), api_key="")

        with pytest.raises(NotConfiguredError):
            await client.generate("gemini-2.0-flash", "p")
        http.post_json.assert_not_called()


# ============================================================
# MODEL LISTING TESTS
# ============================================================

class TestListModels:
    """Tests for list_generate_content_models()."""

    @pytest.mark.asyncio
    async def test_filters_generate_content(self):
        """Test only generateContent models are returned, unprefixed."""
        client, http = make_client({"models": [
            {"name": "models/gemini-2.0-flash", "supportedGenerationMethods": ["generateContent"]},
            {"name": "models/embedding-001", "supportedGenerationMethods": ["embedContent"]},
            {"name": "models/gemini-1.5-pro", "supportedGenerationMethods": ["countTokens", "generateContent"]},
        ]})

        assert await client.list_generate_content_models() == ["gemini-2.0-flash", "gemini-1.5-pro"]
        assert http.get_json.call_args.args[0] == "https://gl.example/v1beta/models?key=g-key"

    @pytest.mark.asyncio
    async def test_malformed_listing(self):
        """Test a listing without models is malformed."""
        client, _ = make_client({"error": "nope"})

        with pytest.raises(MalformedResponseError):
            await client.list_generate_content_models()


# ============================================================
# PRICE TESTS
# ============================================================

class TestPrices:
    """Tests for the price collaborator."""

    @pytest.mark.parametrize("symbol,coin_id", [
        ("BTC", "bitcoin"),
        ("eth", "ethereum"),
        ("BNB", "binancecoin"),
        ("USDT", "tether"),
        ("SOL", "solana"),
        ("XRP", "ripple"),
        ("DOGE", "dogecoin"),
        ("SUI", "sui"),
        ("PEPE", "pepe"),
    ])
    def test_coin_id_for(self, symbol, coin_id):
        """Test symbol mapping and lower-cased passthrough."""
        assert coin_id_for(symbol) == coin_id

    @pytest.mark.asyncio
    async def test_static_provider(self):
        """Test registered prices are served."""
        prices = StaticPriceProvider()
        prices.set_price("bitcoin", price=64000, volume_24h=2.1e10, price_change_24h=-4.2)

        data = await prices.get_price("bitcoin")

        assert data.price == 64000
        assert data.price_change_24h == -4.2

    @pytest.mark.asyncio
    async def test_static_provider_unknown(self):
        """Test unknown ids raise NoDataError."""
        with pytest.raises(NoDataError):
            await StaticPriceProvider().get_price("nothing")
