"""OVH Diagnostic Bot — Diagnostic Records.

Normalized records produced by the service probes. Incidents, xDSL
diagnostics and order steps stay as the raw API dicts: the formatters
read them field by field and tolerate missing keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class ServiceInfo:
    """Expiry state of one service instance.

    Attributes:
        base_url: Service family path, e.g. "/domain".
        service_name: Instance identifier under base_url.
        status: serviceInfos status (ok, expired, unPaid, ...).
        renewal_type: serviceInfos renewalType (manual, automaticV2016, ...).
        expire_date: Expiration timestamp (UTC).
        diff: Whole days until expiry, rounded up; negative once expired.
    """

    base_url: str
    service_name: str
    status: str
    renewal_type: str
    expire_date: datetime
    diff: int

    @property
    def will_expire(self) -> bool:
        return self.diff > 0


@dataclass
class TelephonyAccount:
    """Everything needed to diagnose one telephony billing account."""

    billing: dict[str, Any]
    portability: list[dict[str, Any]] = field(default_factory=list)
    service_infos: dict[str, Any] = field(default_factory=dict)


def parse_api_datetime(value: str) -> datetime:
    """Parse an OVH API date or datetime string into an aware UTC datetime.

    Date-only values ("2024-05-12") are taken as midnight UTC.

    Raises:
        ValueError: If *value* is not ISO 8601.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
