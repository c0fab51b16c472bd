import logging

from core.exceptions import GatewayError
from core.stepper import VariantPriceStepper

logger = logging.getLogger(__name__)


class PriceAdjustmentOrchestrator:
    def __init__(self, gateway, stepper: VariantPriceStepper):
        self.gateway = gateway
        self.stepper = stepper

    async def adjust_product_prices(self, product_id: str) -> bool:
        """
        One recovery pass over every variant of a product.

        Returns:
            True only if every variant sits at its compare-at price after this pass.
            A failed product fetch returns False; the deal is retried next cycle.
        """
        try:
            product = await self.gateway.fetch_product(product_id)
        except GatewayError as e:
            logger.error(f"❌ Error fetching product {product_id}: {e}")
            return False

        all_complete = True
        for variant in product.variants:
            result = await self.stepper.step(product.id, variant)
            if not result.complete:
                all_complete = False

        logger.info(f"Prices adjusted for product {product.title or product.id}")
        return all_complete
