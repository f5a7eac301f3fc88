from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Final, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

TRACKED_TYPES: Final[tuple[str, ...]] = (
    "wage",
    "itemMarket",
    "trading",
    "donation",
    "applicationFee",
)


def parse_instant(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are treated as UTC. A trailing ``Z`` is accepted.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


class FeedBaseModel(BaseModel):
    """Shared base for feed models with a short parse alias."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    @classmethod
    def parse(cls, data: Any) -> Self:
        return cls.model_validate(data)


class TransactionRecord(FeedBaseModel):
    """
    A single transaction mirrored from the remote feed.

    Wire keys are camelCase (``createdAt``, ``buyerId``...); attributes are
    snake_case. Records are immutable once built.
    """

    id: str
    created_at: str = Field(alias="createdAt")
    transaction_type: str = Field(alias="transactionType")
    buyer_id: str | None = Field(default=None, alias="buyerId")
    seller_id: str | None = Field(default=None, alias="sellerId")
    money: float = 0.0
    quantity: float = 0.0
    item_code: str | None = Field(default=None, alias="itemCode")

    @field_validator("id", "buyer_id", "seller_id", mode="before")
    @classmethod
    def _coerce_identifier(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("money", "quantity", mode="before")
    @classmethod
    def _missing_amount_is_zero(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("created_at", mode="before")
    @classmethod
    def _normalize_created_at(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return parse_instant(value).isoformat()
        if isinstance(value, str):
            # Raises ValueError, reported by pydantic as a validation error
            parse_instant(value)
        return value

    @property
    def created_instant(self) -> datetime:
        """The creation timestamp as an aware UTC datetime."""
        return parse_instant(self.created_at)

    @property
    def is_trading(self) -> bool:
        return self.transaction_type == "trading"

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> TransactionRecord:
        return cls.parse(data)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class FeedPage(FeedBaseModel):
    """One page of the remote feed: items newest first, plus a continuation.

    ``next_cursor`` is opaque and is sent back exactly as the feed returned it.
    """

    items: list[TransactionRecord] = Field(default_factory=list)
    next_cursor: Any = Field(default=None, alias="nextCursor")

    @field_validator("items", mode="before")
    @classmethod
    def _null_items_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("next_cursor", mode="before")
    @classmethod
    def _empty_cursor_is_none(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return value
