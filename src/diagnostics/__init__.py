"""OVH Diagnostic Bot — Diagnostics Package.

Components:
  - probes: per-family fetch and normalization of OVH service data
  - formatters: pure mapping of diagnostic records to chat messages
  - pipeline: status and expiry aggregation for one user
"""

from src.diagnostics.formatters import (
    check_website,
    check_xdsl_diag,
    check_xdsl_diag_advanced,
    telephony_diag,
)
from src.diagnostics.models import ServiceInfo, TelephonyAccount
from src.diagnostics.pipeline import (
    SERVICE_FAMILIES,
    get_services_expires,
    get_services_status,
)
from src.diagnostics.probes import (
    fetch_expiring_services,
    fetch_hosting_status,
    fetch_telephony_account,
    fetch_xdsl_incidents,
)

__all__ = [
    "SERVICE_FAMILIES",
    "ServiceInfo",
    "TelephonyAccount",
    "check_website",
    "check_xdsl_diag",
    "check_xdsl_diag_advanced",
    "fetch_expiring_services",
    "fetch_hosting_status",
    "fetch_telephony_account",
    "fetch_xdsl_incidents",
    "get_services_expires",
    "get_services_status",
    "telephony_diag",
]
