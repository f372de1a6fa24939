"""OVH Diagnostic Bot — Aggregation Pipeline.

Runs the service probes for one user and turns their results into the
list of messages to deliver:
  - get_services_status: cloud incidents, xDSL incidents, hosting checks
  - get_services_expires: manually-renewed services expiring soon
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

from src.diagnostics.formatters import (
    format_cloud_incident,
    format_expiring_family,
    format_xdsl_incident,
)
from src.diagnostics.probes import (
    ApiClient,
    fetch_cloud_incidents,
    fetch_expiring_services,
    fetch_hosting_status,
    fetch_xdsl_incidents,
)
from src.platforms.generics import PresentationMessage
from src.utils.logger import get_logger

logger = get_logger(__name__)

# ── Service families scanned for expiry ──────────────────
SERVICE_FAMILIES: tuple[str, ...] = (
    "/allDom", "/caas/containers", "/caas/registry", "/cdn/dedicated", "/cdn/website",
    "/cdn/webstorage", "/cloud/project", "/cluster/hadoop", "/dbaas/logs", "/dbaas/queue",
    "/dbaas/timeseries", "/dedicated/ceph", "/dedicated/housing", "/dedicated/nas",
    "/dedicated/nasha", "/dedicated/server", "/dedicatedCloud", "/deskaas", "/domain",
    "/domain/zone", "/email/domain", "/email/pro", "/freefax", "/horizonView",
    "/hosting/privateDatabase", "/hosting/reseller", "/hosting/web", "/hpcspot",
    "/ip/loadBalancing", "/ipLoadbalancing", "/license/cloudLinux", "/license/cpanel",
    "/license/directadmin", "/license/office", "/license/plesk", "/license/sqlserver",
    "/license/virtuozzo", "/license/windows", "/license/worklight", "/metrics",
    "/msServices/sharepoint", "/overTheBox", "/paas/database", "/paas/monitoring",
    "/pack/siptrunk", "/pack/xdsl", "/router", "/saas/csp2", "/sms", "/ssl", "/sslGateway",
    "/stack/mis", "/telephony", "/veeamCloudConnect", "/vps", "/xdsl", "/xdsl/spare",
)


async def get_services_status(
    client: ApiClient, locale: str, probe_timeout: float = 10.0
) -> list[PresentationMessage]:
    """What is the status of my services?

    Runs the three status probes concurrently. The check is best-effort:
    any failure is logged and yields no message at all.

    Returns:
        Cloud incidents, then xDSL incidents, then hosting diagnostics.
    """
    try:
        cloud_status, xdsl_status, hosting_status = await asyncio.gather(
            fetch_cloud_incidents(client),
            fetch_xdsl_incidents(client),
            fetch_hosting_status(client, locale, probe_timeout),
        )
    except Exception as e:
        logger.warning("Status check abandoned: %s", e)
        return []

    return [
        *(format_cloud_incident(incident, locale) for incident in cloud_status),
        *(format_xdsl_incident(incident, locale) for incident in xdsl_status),
        *hosting_status,
    ]


async def get_services_expires(
    client: ApiClient,
    locale: str,
    expires_period: int,
    now: Optional[datetime] = None,
) -> list[PresentationMessage]:
    """When will my services expire?

    Scans the fixed family catalog plus one family per Exchange
    organization, concurrently. Each family with expiring instances gives
    one message; families with none give nothing.

    Args:
        client: Authenticated API client.
        locale: Locale of the produced messages.
        expires_period: Horizon in days.
        now: Reference time, defaults to the current UTC time.

    Returns:
        One message per family, in catalog order.
    """
    try:
        organizations = await client.get("/email/exchange")
    except Exception as e:
        logger.error("Cannot list Exchange organizations: %s", e)
        organizations = []
    families = [
        *SERVICE_FAMILIES,
        *(f"/email/exchange/{name}/service" for name in organizations),
    ]

    per_family = await asyncio.gather(
        *(fetch_expiring_services(client, family, expires_period, now) for family in families)
    )

    messages: list[PresentationMessage] = []
    for infos in per_family:
        message = format_expiring_family(infos, locale)
        if message is not None:
            messages.append(message)

    logger.debug(
        "Expiry scan: %d families, %d with expiring services",
        len(families), len(messages),
    )
    return messages
