import logging
from dataclasses import dataclass
from decimal import Decimal

from core.exceptions import GatewayError
from models.product import Variant, to_money

logger = logging.getLogger(__name__)


def next_price(current: Decimal, target: Decimal, increment: Decimal) -> Decimal:
    """
    Next price on the way back up to the compare-at price.

    - at or above the target: unchanged
    - less than one increment away: snap to the target
    - otherwise one increment up, never past the target
    """
    if current >= target:
        return current
    if target - current < increment:
        return to_money(target)
    return to_money(min(current + increment, target))


@dataclass
class StepResult:
    price: Decimal
    complete: bool
    mutated: bool = False


class VariantPriceStepper:
    def __init__(self, gateway, increment: Decimal):
        if increment <= 0:
            raise ValueError("increment must be greater than zero")
        self.gateway = gateway
        self.increment = Decimal(increment)

    async def step(self, product_id: str, variant: Variant) -> StepResult:
        """Raise one variant by one increment; failures leave it where it was."""
        current = variant.price
        target = variant.compare_at_price

        if target is None:
            logger.warning(f"Variant {variant.id} has no compare-at price, nothing to recover")
            return StepResult(price=current, complete=True)
        if current >= target:
            return StepResult(price=current, complete=True)

        new_price = next_price(current, target, self.increment)
        formatted = f"{new_price:.2f}"

        try:
            echoed = await self.gateway.update_variant_price(product_id, variant.id, formatted)
        except GatewayError as e:
            logger.error(f"❌ Error updating variant {variant.id} price: {e}")
            return StepResult(price=current, complete=False)

        applied = echoed if echoed is not None else new_price
        logger.info(f"Updated variant {variant.id} price to {formatted}")
        return StepResult(price=applied, complete=to_money(applied) == to_money(target), mutated=True)
