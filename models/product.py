from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

TWO_PLACES = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class Variant(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    price: Decimal
    compare_at_price: Optional[Decimal] = Field(default=None, alias="compareAtPrice")

    @field_validator("price", "compare_at_price")
    @classmethod
    def _two_places(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        return None if value is None else to_money(value)


class Product(BaseModel):
    id: str
    title: str = ""
    variants: List[Variant] = []
