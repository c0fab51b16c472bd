import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ValidationError, field_validator

from core.exceptions import DataShapeError

EPOCH_LIKE = re.compile(r"[+-]?\d+(\.\d+)?")


def parse_flag(value: Optional[str]) -> bool:
    """Metaobject booleans come back as the strings "true" / "false"."""
    return (value or "").strip().lower() == "true"


class DealField(BaseModel):
    key: str
    value: Optional[str] = None


class DealRecord(BaseModel):
    """Raw deal metaobject as returned by the Admin API."""
    id: str
    fields: List[DealField] = []

    def field_map(self) -> Dict[str, Optional[str]]:
        # Duplicated keys: last one wins
        return {field.key: field.value for field in self.fields}


class DealFieldKeys(BaseModel):
    pricing: str = "wtf_pricing"
    start_time: str = "start_time"
    product: str = "product"
    started: str = "started"


class Deal(BaseModel):
    id: str
    pricing_enabled: bool = False
    start_time: Optional[datetime] = None
    product_id: Optional[str] = None
    started: bool = False

    @field_validator("start_time", mode="before")
    @classmethod
    def _reject_epoch_numbers(cls, value):
        # Only ISO-8601 text is a valid start time, never a bare number
        if isinstance(value, (int, float)) or (isinstance(value, str) and EPOCH_LIKE.fullmatch(value.strip())):
            raise ValueError(f"start time must be an ISO-8601 timestamp, got {value!r}")
        return value

    @field_validator("start_time")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_record(cls, record: DealRecord, keys: Optional[DealFieldKeys] = None) -> "Deal":
        """
        Convert the raw record into typed values.

        Raises:
            DataShapeError: if a present field cannot be parsed (e.g. a bad timestamp).
        """
        keys = keys or DealFieldKeys()
        fields = record.field_map()
        try:
            return cls(
                id=record.id,
                pricing_enabled=parse_flag(fields.get(keys.pricing)),
                start_time=fields.get(keys.start_time) or None,
                product_id=fields.get(keys.product) or None,
                started=parse_flag(fields.get(keys.started)),
            )
        except ValidationError as e:
            raise DataShapeError(f"Deal {record.id} has invalid fields", e.errors(include_url=False)) from e

    def is_eligible(self, now: datetime) -> bool:
        return bool(
            self.pricing_enabled
            and self.product_id
            and self.start_time is not None
            and self.start_time <= now
        )
