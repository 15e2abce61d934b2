"""Payment and summary models shared by the gateway and the storage service."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware UTC datetime."""
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp has no UTC offset: {value!r}")
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format an aware datetime as RFC 3339 in UTC with millisecond precision."""
    if value.tzinfo is None:
        raise ValueError("cannot format a naive datetime")
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _require_mapping(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"expected an object, got {type(data).__name__}")
    return data


def _field(data: Mapping[str, Any], key: str) -> Any:
    if key not in data:
        raise ValueError(f"missing field {key!r}")
    return data[key]


def _number(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field {key!r} must be a number")
    return float(value)


def _count(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"field {key!r} must be a non-negative integer")
    return value


@dataclass(frozen=True)
class PaymentProcessorRequest:
    """A payment as sent to a payment processor and stored afterwards."""

    correlation_id: uuid.UUID
    amount: float
    requested_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "correlationId": str(self.correlation_id),
            "amount": self.amount,
            "requestedAt": format_timestamp(self.requested_at),
        }


@dataclass(frozen=True)
class PaymentRequest:
    """A payment as received from a client."""

    correlation_id: uuid.UUID
    amount: float

    @classmethod
    def from_dict(cls, data: Any) -> PaymentRequest:
        data = _require_mapping(data)
        raw_id = _field(data, "correlationId")
        try:
            correlation_id = uuid.UUID(raw_id)
        except (TypeError, ValueError, AttributeError) as exc:
            raise ValueError(f"invalid correlationId: {raw_id!r}") from exc
        return cls(correlation_id, _number(_field(data, "amount"), "amount"))

    def to_processor(self) -> PaymentProcessorRequest:
        """Stamp the payment with the current time for a processor."""
        return PaymentProcessorRequest(self.correlation_id, self.amount, datetime.now(timezone.utc))


@dataclass(frozen=True)
class SummaryOrigin:
    """Totals for the payments handled by one processor."""

    total_requests: int = 0
    total_amount: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"totalRequests": self.total_requests, "totalAmount": self.total_amount}

    @classmethod
    def from_dict(cls, data: Any) -> SummaryOrigin:
        data = _require_mapping(data)
        return cls(
            _count(_field(data, "totalRequests"), "totalRequests"),
            _number(_field(data, "totalAmount"), "totalAmount"),
        )


@dataclass(frozen=True)
class SummaryResponse:
    """Totals for the default and the fallback processor."""

    default: SummaryOrigin = field(default_factory=SummaryOrigin)
    fallback: SummaryOrigin = field(default_factory=SummaryOrigin)

    def to_dict(self) -> dict[str, Any]:
        return {"default": self.default.to_dict(), "fallback": self.fallback.to_dict()}

    @classmethod
    def from_dict(cls, data: Any) -> SummaryResponse:
        data = _require_mapping(data)
        return cls(*(SummaryOrigin.from_dict(_field(data, key)) for key in ("default", "fallback")))


@dataclass(frozen=True)
class ServiceHealthResponse:
    """Health report of a payment processor."""

    failing: bool
    min_response_time: int

    @classmethod
    def from_dict(cls, data: Any) -> ServiceHealthResponse:
        data = _require_mapping(data)
        failing = _field(data, "failing")
        if not isinstance(failing, bool):
            raise ValueError("field 'failing' must be a boolean")
        return cls(failing, _count(_field(data, "minResponseTime"), "minResponseTime"))

    def to_dict(self) -> dict[str, Any]:
        return {"failing": self.failing, "minResponseTime": self.min_response_time}


@dataclass(frozen=True)
class SummaryQuery:
    """Optional time window of a summary request."""

    start: datetime | None = None
    end: datetime | None = None

    @classmethod
    def from_mapping(cls, params: Mapping[str, str]) -> SummaryQuery:
        start, end = (params.get(key) for key in ("from", "to"))
        return cls(
            None if start is None else parse_timestamp(start),
            None if end is None else parse_timestamp(end),
        )