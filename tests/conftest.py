"""Pytest fixtures: in-memory Shopify gateway and a frozen clock."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.exceptions import PayloadError, TransportFault
from core.orchestrator import PriceAdjustmentOrchestrator
from core.scanner import DealScanner
from core.stepper import VariantPriceStepper
from core.tracker import DealTracker
from models.deal import DealRecord
from models.product import Product, Variant

NOW = datetime(2024, 11, 29, 12, 0, tzinfo=timezone.utc)


class FakeGateway:
    """
    Stands in for ShopifyAdminClient.

    Prices live in `products` and change only through update_variant_price,
    the same way the remote store is the state of record.
    """

    def __init__(self):
        self.deals = {}
        self.products = {}
        self.price_updates = []
        self.metadata_updates = []
        self.fail_fetch_deals = False
        self.fail_fetch_product = set()
        self.rejected_variants = set()
        self.unreachable_variants = set()
        self.fail_metadata = False

    # --- seed helpers ---
    def add_deal(self, deal_id, **fields):
        self.deals[deal_id] = {key: value for key, value in fields.items() if value is not None}

    def add_product(self, product_id, title, *variants):
        self.products[product_id] = {
            "title": title,
            "variants": {vid: [Decimal(price), None if cap is None else Decimal(cap)] for vid, price, cap in variants},
        }

    def price_of(self, product_id, variant_id):
        return self.products[product_id]["variants"][variant_id][0]

    # --- gateway interface ---
    async def fetch_deals(self):
        if self.fail_fetch_deals:
            raise TransportFault("connection refused")
        return [
            DealRecord(id=deal_id, fields=[{"key": k, "value": v} for k, v in fields.items()])
            for deal_id, fields in self.deals.items()
        ]

    async def fetch_product(self, product_id):
        if product_id in self.fail_fetch_product or product_id not in self.products:
            raise PayloadError("GraphQL errors", [{"message": "product unavailable"}])
        product = self.products[product_id]
        return Product(
            id=product_id,
            title=product["title"],
            variants=[
                Variant(id=vid, price=price, compare_at_price=cap)
                for vid, (price, cap) in product["variants"].items()
            ],
        )

    async def update_variant_price(self, product_id, variant_id, price):
        if variant_id in self.unreachable_variants:
            raise TransportFault("timed out")
        if variant_id in self.rejected_variants:
            raise PayloadError("Price update rejected", [{"field": ["price"], "message": "Price is invalid"}])
        self.price_updates.append((variant_id, price))
        self.products[product_id]["variants"][variant_id][0] = Decimal(price)
        return Decimal(price)

    async def update_deal_metadata(self, deal_id, fields):
        if self.fail_metadata:
            raise PayloadError("Metadata update rejected", [{"field": ["fields"], "message": "nope", "code": "INVALID"}])
        self.metadata_updates.append((deal_id, dict(fields)))
        self.deals[deal_id].update(fields)


def live_deal(product_id, start_time="2024-11-29T08:00:00Z", **extra):
    fields = {"wtf_pricing": "true", "start_time": start_time, "product": product_id}
    fields.update(extra)
    return fields


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def tracker() -> DealTracker:
    return DealTracker()


@pytest.fixture
def make_scanner(gateway, tracker):
    def _make(increment="9.99", persist_start_marker=False, clock=lambda: NOW):
        stepper = VariantPriceStepper(gateway, Decimal(increment))
        orchestrator = PriceAdjustmentOrchestrator(gateway, stepper)
        return DealScanner(
            gateway,
            tracker,
            orchestrator,
            persist_start_marker=persist_start_marker,
            clock=clock,
        )
    return _make
