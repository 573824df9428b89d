"""Tests for scrape data structures, price normalization and adapter dispatch."""

from decimal import Decimal

import pytest

from pricewatch.core.exceptions import AdapterNotRegisteredError
from pricewatch.scrapers.adapters import JumboAdapter, NacionalAdapter, SirenaAdapter
from pricewatch.scrapers.base import BaseAdapter
from pricewatch.scrapers.factory import AdapterFactory
from pricewatch.scrapers.register_adapters import register_all_adapters
from pricewatch.scrapers.types import (
    FetchConfig,
    ScrapeError,
    ScrapeInput,
    ScrapeNotFound,
    ScrapeOk,
    ShopId,
    is_shop_id,
)
from pricewatch.scrapers.utils.normalizer import PriceNormalizer


class TestScrapeInput:

    def test_coerces_shop_id(self):
        item = ScrapeInput(shop_id=2, url="https://x.example")

        assert item.shop_id is ShopId.NACIONAL
        assert item.api is None

    @pytest.mark.parametrize("shop_id", [0, 7, -1, True, "2", 2.0, None])
    def test_rejects_unknown_shop(self, shop_id):
        with pytest.raises(ValueError):
            ScrapeInput(shop_id=shop_id, url="https://x.example")

    def test_requires_url(self):
        with pytest.raises(ValueError):
            ScrapeInput(shop_id=1, url="")

    def test_is_frozen(self):
        item = ScrapeInput(shop_id=1, url="https://x.example")

        with pytest.raises(AttributeError):
            item.url = "https://y.example"

    def test_is_shop_id(self):
        assert all(is_shop_id(value) for value in range(1, 7))
        assert not is_shop_id(False)
        assert not is_shop_id(8)


class TestScrapeResults:

    def test_defaults(self):
        not_found = ScrapeNotFound(shop_id=ShopId.SIRENA, reason="product_not_found")
        error = ScrapeError(shop_id=ShopId.SIRENA, reason="request_failed")

        assert not_found.hide is True
        assert error.retryable is True
        assert error.hide is False

    def test_to_dict(self):
        ok = ScrapeOk(shop_id=ShopId.PLAZA_LAMA, current_price="129.95", regular_price="150")

        assert ok.to_dict() == {
            "status": "ok",
            "shopId": 4,
            "shopName": "plaza_lama",
            "currentPrice": "129.95",
            "regularPrice": "150",
        }
        assert ScrapeError(shop_id=ShopId.JUMBO, reason="blocked").to_dict()["retryable"] is True

    def test_fetch_config(self):
        config = FetchConfig(max_retries=0, timeout_ms=2500)

        assert config.attempts == 1
        assert config.timeout_seconds == 2.5


class TestPriceNormalizer:

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("95.50", "95.50"),
            (125, "125"),
            (99.5, "99.5"),
            (Decimal("1E+3"), "1000"),
            ("1,250.00", "1250.00"),
            (" 42 ", "42"),
        ],
    )
    def test_to_price_string(self, value, expected):
        assert PriceNormalizer.to_price_string(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", True, float("nan"), "Infinity"])
    def test_rejects_non_prices(self, value):
        assert PriceNormalizer.to_price_string(value) is None

    def test_prices_equal_is_numeric(self):
        assert PriceNormalizer.prices_equal("100", Decimal("100.00"))
        assert PriceNormalizer.prices_equal(100, "100.0")
        assert not PriceNormalizer.prices_equal("100", "100.01")
        assert not PriceNormalizer.prices_equal(None, "100")


class TestBaseAdapterHelpers:

    def test_unparseable_price_becomes_error(self):
        result = SirenaAdapter().ok("N/A")

        assert result == ScrapeError(shop_id=ShopId.SIRENA, reason="price_not_found", retryable=False, hide=False)

    def test_ok_normalizes_prices(self):
        result = SirenaAdapter().ok(Decimal("99.90"), 120)

        assert result == ScrapeOk(shop_id=ShopId.SIRENA, current_price="99.90", regular_price="120")


class TestAdapterFactory:

    def test_register_all_adapters(self):
        factory = register_all_adapters(AdapterFactory())

        assert sorted(factory.get_registered_shops()) == list(ShopId)
        assert isinstance(factory.get_adapter(ShopId.NACIONAL), NacionalAdapter)
        assert isinstance(factory.get_adapter(3), JumboAdapter)

    def test_registration_is_idempotent(self):
        factory = register_all_adapters(AdapterFactory())
        register_all_adapters(factory)

        assert len(factory.get_registered_shops()) == len(ShopId)

    def test_get_adapter_caches_instances(self):
        factory = register_all_adapters(AdapterFactory())

        assert factory.get_adapter(ShopId.SIRENA) is factory.get_adapter(ShopId.SIRENA)
        assert factory.create_adapter(ShopId.SIRENA) is not factory.get_adapter(ShopId.SIRENA)

    def test_injects_shared_client(self):
        client = object()
        factory = register_all_adapters(AdapterFactory(http_client=client, browser_timeout_ms=5000))

        assert factory.get_adapter(ShopId.BRAVO).http_client is client
        assert factory.get_adapter(ShopId.JUMBO).browser_timeout_ms == 5000

    def test_unregistered_shop(self):
        factory = AdapterFactory()

        assert not factory.has_adapter(ShopId.SIRENA)
        with pytest.raises(AdapterNotRegisteredError):
            factory.create_adapter(ShopId.SIRENA)

    def test_rejects_non_adapter_classes(self):
        with pytest.raises(ValueError):
            AdapterFactory().register_adapter(ShopId.SIRENA, dict)

    def test_adapters_share_the_base_contract(self):
        factory = register_all_adapters(AdapterFactory())

        for shop_id in ShopId:
            adapter = factory.get_adapter(shop_id)
            assert isinstance(adapter, BaseAdapter)
            assert adapter.shop_id == shop_id
            assert isinstance(adapter.build_headers(), dict)
