import asyncio
from decimal import Decimal
from typing import Dict, List, Optional

import aiohttp
from pydantic import ValidationError

from core.exceptions import DataShapeError, PayloadError, TransportFault
from models.deal import DealRecord
from models.product import Product, Variant, to_money

PAGE_SIZE = 250

FETCH_DEALS_QUERY = """
  query FetchDeals($type: String!, $first: Int!, $after: String) {
    metaobjects(type: $type, first: $first, after: $after) {
      nodes {
        id
        fields {
          key
          value
        }
      }
      pageInfo {
        hasNextPage
        endCursor
      }
    }
  }
"""

FETCH_PRODUCT_QUERY = """
  query GetProduct($id: ID!, $first: Int!, $after: String) {
    product(id: $id) {
      id
      title
      variants(first: $first, after: $after) {
        nodes {
          id
          price
          compareAtPrice
        }
        pageInfo {
          hasNextPage
          endCursor
        }
      }
    }
  }
"""

UPDATE_VARIANT_PRICE_MUTATION = """
  mutation UpdateVariantPrice($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
    productVariantsBulkUpdate(productId: $productId, variants: $variants) {
      productVariants {
        id
        price
      }
      userErrors {
        field
        message
      }
    }
  }
"""

UPDATE_DEAL_MUTATION = """
  mutation UpdateDeal($id: ID!, $metaobject: MetaobjectUpdateInput!) {
    metaobjectUpdate(id: $id, metaobject: $metaobject) {
      metaobject {
        id
      }
      userErrors {
        field
        message
        code
      }
    }
  }
"""


class ShopifyAdminClient:
    """GraphQL client for the Shopify Admin API (deals, products and price mutations)."""

    def __init__(self, store_domain: str, access_token: str, api_version: str = "2025-01",
                 deal_type: str = "deal", timeout: float = 30, endpoint: Optional[str] = None):
        self.store_domain = store_domain
        self.access_token = access_token
        self.deal_type = deal_type
        self.timeout = timeout
        self.endpoint = endpoint or f"https://{store_domain}/admin/api/{api_version}/graphql.json"

    async def fetch_deals(self) -> List[DealRecord]:
        """Lists every metaobject of the deal type, following pagination."""
        records = []
        cursor = None
        while True:
            data = await self._request(
                FETCH_DEALS_QUERY,
                {"type": self.deal_type, "first": PAGE_SIZE, "after": cursor},
            )
            connection = data.get("metaobjects")
            if connection is None:
                raise DataShapeError("Response has no 'metaobjects' connection")
            try:
                records.extend(DealRecord.model_validate(node) for node in connection.get("nodes") or [])
            except ValidationError as e:
                raise DataShapeError("Malformed deal record", e.errors(include_url=False)) from e

            cursor = self._next_cursor(connection)
            if cursor is None:
                return records

    async def fetch_product(self, product_id: str) -> Product:
        variants: List[Variant] = []
        cursor = None
        while True:
            data = await self._request(
                FETCH_PRODUCT_QUERY,
                {"id": product_id, "first": PAGE_SIZE, "after": cursor},
            )
            node = data.get("product")
            if node is None:
                raise DataShapeError(f"Product {product_id} not found")
            connection = node.get("variants") or {}
            try:
                variants.extend(Variant.model_validate(v) for v in connection.get("nodes") or [])
            except ValidationError as e:
                raise DataShapeError(f"Malformed variant on product {product_id}", e.errors(include_url=False)) from e

            cursor = self._next_cursor(connection)
            if cursor is None:
                return Product(id=node.get("id") or product_id, title=node.get("title") or "", variants=variants)

    async def update_variant_price(self, product_id: str, variant_id: str, price: str) -> Optional[Decimal]:
        """
        Set the price of a single variant.

        Returns:
            The price echoed back by the API, or None if it echoed nothing.

        Raises:
            PayloadError: the mutation reported userErrors.
        """
        data = await self._request(
            UPDATE_VARIANT_PRICE_MUTATION,
            {"productId": product_id, "variants": [{"id": variant_id, "price": price}]},
        )
        result = data.get("productVariantsBulkUpdate")
        if result is None:
            raise DataShapeError("Response has no 'productVariantsBulkUpdate' payload")

        user_errors = result.get("userErrors") or []
        if user_errors:
            raise PayloadError(f"Price update rejected for variant {variant_id}", user_errors)

        for variant in result.get("productVariants") or []:
            if variant.get("id") == variant_id and variant.get("price") is not None:
                return to_money(variant["price"])
        return None

    async def update_deal_metadata(self, deal_id: str, fields: Dict[str, str]) -> None:
        data = await self._request(
            UPDATE_DEAL_MUTATION,
            {"id": deal_id, "metaobject": {"fields": [{"key": k, "value": v} for k, v in fields.items()]}},
        )
        result = data.get("metaobjectUpdate")
        if result is None:
            raise DataShapeError("Response has no 'metaobjectUpdate' payload")

        user_errors = result.get("userErrors") or []
        if user_errors:
            raise PayloadError(f"Metadata update rejected for deal {deal_id}", user_errors)

    @staticmethod
    def _next_cursor(connection: dict) -> Optional[str]:
        page_info = connection.get("pageInfo") or {}
        if page_info.get("hasNextPage") and page_info.get("endCursor"):
            return page_info["endCursor"]
        return None

    async def _request(self, query: str, variables: Optional[dict] = None) -> dict:
        headers = {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        payload = {"query": query, "variables": variables or {}}

        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.post(self.endpoint, headers=headers, json=payload) as response:
                    if response.status != 200:
                        text = await response.text()
                        raise TransportFault(f"HTTP {response.status} from {self.store_domain}: {text[:200]}")
                    body = await response.json()
        except aiohttp.ClientError as e:
            raise TransportFault(f"Request to {self.store_domain} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise TransportFault(f"Request to {self.store_domain} timed out after {self.timeout}s") from e
        except ValueError as e:
            raise DataShapeError(f"Response from {self.store_domain} is not valid JSON") from e

        if not isinstance(body, dict):
            raise DataShapeError("Response body is not a JSON object")
        if body.get("errors"):
            raise PayloadError("GraphQL errors", body["errors"])

        data = body.get("data")
        if not isinstance(data, dict):
            raise DataShapeError("Response has no 'data' object")
        return data
