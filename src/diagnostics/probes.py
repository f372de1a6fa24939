"""OVH Diagnostic Bot — Service Probes.

One probe per service family: each fetches what is needed to decide
whether a service is healthy or about to expire, and normalizes it.

Failure policy:
  - Background probes (expiry, hosting) isolate failures per instance or
    per site: the failure is logged and only that unit is dropped.
  - A 404 on an optional sub-resource (incident, SSL, diagnostic) means
    "absent", never an error.
  - User-initiated probes (telephony, xDSL line) let the first error
    propagate so the caller can report it.
"""

from __future__ import annotations

import asyncio
import math
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import httpx

from src.diagnostics.formatters import check_website
from src.diagnostics.models import ServiceInfo, TelephonyAccount, parse_api_datetime
from src.ovh.errors import is_not_found
from src.platforms.generics import Button, ButtonType, PresentationMessage
from src.utils.logger import get_logger

logger = get_logger(__name__)

_SECONDS_PER_DAY = 24 * 3600


class ApiClient(Protocol):
    """The subset of OvhClient the probes rely on."""

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        ...


async def _get_or_default(client: ApiClient, path: str, default: Any) -> Any:
    """GET *path*, returning *default* when the API answers 404."""
    try:
        return await client.get(path)
    except Exception as e:
        if is_not_found(e):
            return default
        raise


# ═══════════════════════════════════════════════════════════
# Expiring services
# ═══════════════════════════════════════════════════════════


def days_until(expiration: datetime, now: datetime) -> int:
    """Whole days from *now* to *expiration*, rounded up (negative if past)."""
    return math.ceil((expiration - now).total_seconds() / _SECONDS_PER_DAY)


async def _fetch_service_info(
    client: ApiClient,
    base_url: str,
    service_name: str,
    expires_period: int,
    now: datetime,
) -> Optional[ServiceInfo]:
    infos = await client.get(f"{base_url}/{service_name}/serviceInfos")
    expire_date = parse_api_datetime(infos["expiration"])
    diff = days_until(expire_date, now)
    if diff <= expires_period and infos.get("renewalType") == "manual":
        return ServiceInfo(
            base_url=base_url,
            service_name=service_name,
            status=infos.get("status", ""),
            renewal_type=infos["renewalType"],
            expire_date=expire_date,
            diff=diff,
        )
    return None


async def fetch_expiring_services(
    client: ApiClient,
    base_url: str,
    expires_period: int,
    now: Optional[datetime] = None,
) -> list[ServiceInfo]:
    """List the manually-renewed instances of a family expiring soon.

    An instance is kept iff its renewalType is "manual" and it expires
    within *expires_period* days (already expired instances included).
    A failing instance is logged and left out; its siblings still count.

    Args:
        client: Authenticated API client.
        base_url: Service family path, e.g. "/domain".
        expires_period: Horizon in days.
        now: Reference time, defaults to the current UTC time.

    Returns:
        Expiring instances in listing order.
    """
    now = now or datetime.now(timezone.utc)
    try:
        service_names = await client.get(base_url)
    except Exception as e:
        logger.error("Cannot list %s: %s", base_url, e)
        return []

    results = await asyncio.gather(
        *(
            _fetch_service_info(client, base_url, name, expires_period, now)
            for name in service_names
        ),
        return_exceptions=True,
    )

    infos: list[ServiceInfo] = []
    for name, result in zip(service_names, results):
        if isinstance(result, BaseException):
            logger.error("serviceInfos failed for %s/%s: %s", base_url, name, result)
        elif result is not None:
            infos.append(result)
    return infos


# ═══════════════════════════════════════════════════════════
# Incidents
# ═══════════════════════════════════════════════════════════


async def fetch_cloud_incidents(client: ApiClient) -> list[dict[str, Any]]:
    """Open incidents from the public /status/task feed."""
    tasks = await client.get("/status/task")
    return [task for task in tasks if task.get("status") != "finished"]


async def fetch_xdsl_incidents(client: ApiClient) -> list[dict[str, Any]]:
    """Current incident detail of every xDSL line that has one."""
    lines = await client.get("/xdsl")
    # The line resource is /xdsl/{line}/incident (singular); it answers 404 when none.
    incident_ids = await asyncio.gather(
        *(_get_or_default(client, f"/xdsl/{line}/incident", None) for line in lines)
    )
    return list(await asyncio.gather(
        *(
            client.get(f"/xdsl/incidents/{incident_id}")
            for incident_id in incident_ids
            if incident_id is not None
        )
    ))


# ═══════════════════════════════════════════════════════════
# Web hosting
# ═══════════════════════════════════════════════════════════


async def fetch_ssl_state(client: ApiClient, site: str) -> dict[str, Any]:
    """SSL certificate of a hosting (None if absent) and the domains it covers."""
    infos, domains = await asyncio.gather(
        _get_or_default(client, f"/hosting/web/{site}/ssl", None),
        _get_or_default(client, f"/hosting/web/{site}/ssl/domains", []),
    )
    return {"infos": infos, "domains": domains}


async def fetch_dns_state(client: ApiClient, domain: str) -> dict[str, Any]:
    """NS records of a zone (fetched one by one) and the zone itself."""

    async def _ns_records() -> list[dict[str, Any]]:
        record_ids = await client.get(f"/domain/zone/{domain}/record", {"fieldType": "NS"})
        records = []
        for record_id in record_ids:
            records.append(await client.get(f"/domain/zone/{domain}/record/{record_id}"))
        return records

    target, real = await asyncio.gather(
        _ns_records(),
        client.get(f"/domain/zone/{domain}"),
    )
    return {"target": target, "real": real}


async def hosting_advanced_check(
    client: ApiClient, site: str, domain: str, locale: str
) -> list[PresentationMessage]:
    """Collect a hosting's configuration for one attached domain and format it."""
    hosting, attached_domain, hosting_emails, ssl, dns = await asyncio.gather(
        client.get(f"/hosting/web/{site}"),
        client.get(f"/hosting/web/{site}/attachedDomain/{domain}"),
        client.get(f"/hosting/web/{site}/email"),
        fetch_ssl_state(client, site),
        fetch_dns_state(client, domain),
    )
    return check_website(hosting, attached_domain, hosting_emails, ssl, dns, locale)


async def is_site_alive(site: str, timeout: float = 10.0) -> bool:
    """Liveness probe: any HTTP answer counts, only transport errors fail."""
    try:
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout)) as http:
            await http.get(f"http://{site}")
        return True
    except httpx.HTTPError as e:
        logger.info("Website %s unreachable: %s", site, e)
        return False


async def _check_site(
    client: ApiClient, site: str, locale: str, probe_timeout: float
) -> list[PresentationMessage]:
    if await is_site_alive(site, probe_timeout):
        return []

    try:
        domains = await client.get(f"/hosting/web/{site}/attachedDomain")
    except Exception as e:
        logger.warning("Advanced check abandoned for %s: %s", site, e)
        return []

    async def _safe_check(domain: str) -> list[PresentationMessage]:
        try:
            return await hosting_advanced_check(client, site, domain, locale)
        except Exception as e:
            logger.warning("Advanced check failed for %s (%s): %s", site, domain, e)
            return []

    per_domain = await asyncio.gather(*(_safe_check(domain) for domain in domains))
    return [message for messages in per_domain for message in messages]


async def fetch_hosting_status(
    client: ApiClient, locale: str, probe_timeout: float = 10.0
) -> list[PresentationMessage]:
    """Diagnose every web hosting whose website does not answer.

    Args:
        client: Authenticated API client.
        locale: Locale of the produced messages.
        probe_timeout: Timeout of the liveness GET, in seconds.

    Returns:
        Already formatted messages, flattened across sites and domains.
    """
    sites = await client.get("/hosting/web")
    per_site = await asyncio.gather(
        *(_check_site(client, site, locale, probe_timeout) for site in sites)
    )
    return [message for messages in per_site for message in messages]


# ═══════════════════════════════════════════════════════════
# Telephony
# ═══════════════════════════════════════════════════════════


async def _fetch_portability(
    client: ApiClient, service: str, portability_id: Any
) -> dict[str, Any]:
    portability = await client.get(f"/telephony/{service}/portability/{portability_id}")
    status = await client.get(f"/telephony/{service}/portability/{portability_id}/status")
    return {**portability, "status": status}


async def fetch_portabilities(client: ApiClient, service: str) -> list[dict[str, Any]]:
    """Number porting requests of a billing account, each with its steps."""
    ids = await client.get(f"/telephony/{service}/portability")
    return list(await asyncio.gather(
        *(_fetch_portability(client, service, portability_id) for portability_id in ids)
    ))


async def fetch_telephony_account(client: ApiClient, service: str) -> TelephonyAccount:
    """Billing, porting requests and contract of one telephony account.

    Sub-fetches run concurrently; the first failure fails the whole probe.
    """
    billing, portability, service_infos = await asyncio.gather(
        client.get(f"/telephony/{service}"),
        fetch_portabilities(client, service),
        client.get(f"/telephony/{service}/serviceInfos"),
    )
    return TelephonyAccount(billing=billing, portability=portability, service_infos=service_infos)


async def fetch_telephony_buttons(client: ApiClient) -> list[Button]:
    """One selection button per telephony billing account."""
    accounts = await client.get("/telephony")

    async def _button(account: str) -> Button:
        info = await client.get(f"/telephony/{account}")
        return Button(
            ButtonType.POSTBACK,
            f"TELEPHONY_SELECTED_{info.get('billingAccount', account)}",
            info.get("description") or account,
        )

    return list(await asyncio.gather(*(_button(account) for account in accounts)))


# ═══════════════════════════════════════════════════════════
# xDSL line
# ═══════════════════════════════════════════════════════════


async def _fetch_line_incident(client: ApiClient, service: str) -> Optional[dict[str, Any]]:
    incident_id = await _get_or_default(client, f"/xdsl/{service}/incident", None)
    if incident_id is None:
        return None
    return await client.get(f"/xdsl/incidents/{incident_id}")


async def fetch_xdsl_diagnostic(client: ApiClient, service: str) -> Optional[dict[str, Any]]:
    """Last advanced diagnostic of an xDSL access, None if never run."""
    return await _get_or_default(client, f"/xdsl/{service}/diagnostic", None)


async def fetch_xdsl_line(client: ApiClient, service: str) -> dict[str, Any]:
    """Offer, contract, order follow-up, incident and last diagnostic of a line."""
    offer, service_infos, order_follow_up, incident, diag = await asyncio.gather(
        client.get(f"/xdsl/{service}"),
        client.get(f"/xdsl/{service}/serviceInfos"),
        client.get(f"/xdsl/{service}/orderFollowup"),
        _fetch_line_incident(client, service),
        fetch_xdsl_diagnostic(client, service),
    )
    return {
        "offer": offer,
        "service_infos": service_infos,
        "order_follow_up": order_follow_up or [],
        "incident": incident,
        "diag": diag,
    }
