"""OVH Diagnostic Bot — Diagnostic Formatters.

Pure functions turning diagnostic records into ordered sequences of
presentation messages. No I/O and no state: the same record and locale
always give the same messages.
"""

from __future__ import annotations

from email.utils import format_datetime
from typing import Any, Optional, Sequence

from src.diagnostics.models import ServiceInfo, parse_api_datetime
from src.i18n import format_date, translate
from src.platforms.generics import (
    Button,
    ButtonsListMessage,
    ButtonType,
    PresentationMessage,
    TextMessage,
)

TRAVAUX_URL = "http://travaux.ovh.net/?do=details&id={}"
SUPPORT_PHONE = "tel:1007"
DEFAULT_DIAG_REMAINING = 5
# Share of the allowed out-of-plan amount above which the user is warned.
OUTPLAN_WARNING_RATIO = 0.8

_LINE_TEST_KEYS = {
    "customerSideProblem": "xdsl-customerSideProblem",
    "ovhSideProblem": "xdsl-ovhSideProblem",
    "error": "xdsl-error",
}
_PENDING_STEP_STATUSES = ("doing", "todo", "error")


def _na(value: Any) -> Any:
    return value if value not in (None, "") else "N/A"


def _utc_string(value: Optional[str]) -> str:
    """Render an API timestamp like "Thu, 20 Apr 2017 12:46:30 GMT"."""
    if not value:
        return "N/A"
    try:
        return format_datetime(parse_api_datetime(value), usegmt=True)
    except ValueError:
        return str(value)


# ═══════════════════════════════════════════════════════════
# Incidents
# ═══════════════════════════════════════════════════════════


def format_cloud_incident(incident: dict[str, Any], locale: str) -> TextMessage:
    """Format one open task from /status/task."""
    status = incident.get("status", "")
    return TextMessage(translate(
        "cloud-incident", locale,
        incident.get("title", ""),
        translate(f"cloud-{status}", locale),
        incident.get("progress", 0),
        incident.get("details") or "",
    ))


def format_xdsl_incident(incident: dict[str, Any], locale: str) -> TextMessage:
    """Format one xDSL incident with its travaux.ovh.net link."""
    return TextMessage(translate(
        "xdsl-incident", locale,
        _na(incident.get("comment")),
        _na(incident.get("endDate")),
        TRAVAUX_URL.format(incident.get("taskId", "")),
    ))


# ═══════════════════════════════════════════════════════════
# Expiring services
# ═══════════════════════════════════════════════════════════


def format_expiring_family(
    infos: Sequence[ServiceInfo], locale: str
) -> Optional[TextMessage]:
    """Fold the expiring instances of one service family into one message.

    Returns None for an empty family so callers can drop it.
    """
    if not infos:
        return None

    lines = [
        translate(
            "serviceWillExpired" if info.will_expire else "serviceHasExpired",
            locale,
            info.service_name,
            translate(f"service-{info.status}", locale),
            abs(info.diff),
            format_date(info.expire_date, locale),
        )
        for info in infos
    ]
    return TextMessage(translate("serviceInfo", locale, infos[0].base_url, "\n".join(lines)))


# ═══════════════════════════════════════════════════════════
# xDSL
# ═══════════════════════════════════════════════════════════


def check_xdsl_diag_advanced(
    diag: dict[str, Any], locale: str
) -> list[PresentationMessage]:
    """Format the result of an advanced xDSL diagnostic.

    Lines, in order: timestamp, modem state, per-line sync status with an
    optional problem classification, ping, overall result, "see more".
    The overall result is NOT OK as soon as the modem is unplugged, a line
    is unsynced or the ping failed.

    Args:
        diag: Raw diagnostic dict (diagnosticTime, isModemConnected,
            lineDetails, ping, remaining).
        locale: Target locale.

    Returns:
        One TextMessage per line.
    """
    lines = [translate("xdsl-diagnosticTime", locale, _utc_string(diag.get("diagnosticTime")))]
    line_problem = False

    modem_connected = diag.get("isModemConnected")
    if modem_connected is not None:
        if not modem_connected:
            lines.append(translate("xdsl-modemUnplug", locale))
            line_problem = True
        else:
            lines.append(translate("xdsl-modemPlug", locale))

    line_details = diag.get("lineDetails")
    if isinstance(line_details, list):
        lines.append(translate("xdsl-lineStatus", locale))
        for line in line_details:
            synced = bool(line.get("sync"))
            lines.append(translate(
                "xdsl-lineSync", locale,
                line.get("number"),
                translate("xdsl-sync" if synced else "xdsl-unsync", locale),
            ))
            test_key = _LINE_TEST_KEYS.get(line.get("lineTest"))
            if test_key:
                lines.append(translate(test_key, locale))
            if not synced:
                line_problem = True

    ping = diag.get("ping")
    if ping is not None:
        if not ping:
            lines.append(translate("xdsl-pingFailed", locale))
            line_problem = True
        else:
            lines.append(translate("xdsl-pingOk", locale))

    lines.append(translate("xdsl-resultNOk" if line_problem else "xdsl-resultOk", locale))
    lines.append(translate("xdsl-resultMore", locale))

    return [TextMessage(line) for line in lines]


def check_xdsl_diag(
    offer: dict[str, Any],
    service_infos: dict[str, Any],
    order_follow_up: Sequence[dict[str, Any]],
    incident: Optional[dict[str, Any]],
    diag: Optional[dict[str, Any]],
    locale: str,
) -> list[PresentationMessage]:
    """Format the overall state of an xDSL access.

    An order whose "accessIsOperational" step is not done short-circuits
    everything else with the list of pending steps.

    Args:
        offer: /xdsl/{service} (status, accessName, ...).
        service_infos: /xdsl/{service}/serviceInfos.
        order_follow_up: /xdsl/{service}/orderFollowup steps, in order.
        incident: Current incident detail, or None.
        diag: Last advanced diagnostic, or None.
        locale: Target locale.

    Returns:
        Ordered presentation messages.
    """
    responses: list[PresentationMessage] = []
    if incident is not None:
        responses.append(format_xdsl_incident(incident, locale))

    order_ok = False
    pending_steps = ""
    for step in order_follow_up:
        status = step.get("status")
        if status in _PENDING_STEP_STATUSES:
            pending_steps += translate(
                "xdsl-orderStepStatus", locale,
                step.get("name"),
                translate(f"xdsl-step-{status}", locale),
                f"{step.get('expectedDuration')} {step.get('durationUnit')}",
            )
        elif status == "done" and step.get("name") == "accessIsOperational":
            order_ok = True

    if not order_ok:
        return [*responses, TextMessage(translate("xdsl-orderNotReady", locale, pending_steps))]

    if offer.get("status") == "slamming":
        button = Button(ButtonType.WEB_URL, SUPPORT_PHONE, translate("xdsl-callSupport", locale))
        responses.append(ButtonsListMessage(translate("xdsl-lineSlamming", locale), [button]))

    if service_infos.get("status") == "unPaid":
        responses.append(TextMessage(translate("xdsl-lineUnPaid", locale)))

    if not responses:
        remaining = diag.get("remaining", DEFAULT_DIAG_REMAINING) if diag else DEFAULT_DIAG_REMAINING
        button = Button(
            ButtonType.POSTBACK,
            f"XDSL_DIAG_{offer.get('accessName', '')}",
            translate("xdsl-launchDiag", locale),
        )
        responses = [
            TextMessage(translate("xdsl-resultAllOk", locale)),
            TextMessage(translate("xdsl-diagRemaining", locale, remaining)),
            ButtonsListMessage(translate("xdsl-advancedDiag", locale), [button]),
        ]

    if diag:
        responses.append(TextMessage(translate("xdsl-lastDiag", locale)))
        responses.extend(check_xdsl_diag_advanced(diag, locale))

    return responses


# ═══════════════════════════════════════════════════════════
# Web hosting
# ═══════════════════════════════════════════════════════════


def _nameservers(values: Sequence[str]) -> set[str]:
    return {v.strip().rstrip(".").lower() for v in values if v}


def check_website(
    hosting: dict[str, Any],
    attached_domain: dict[str, Any],
    hosting_emails: dict[str, Any],
    ssl: dict[str, Any],
    dns: dict[str, Any],
    locale: str,
) -> list[PresentationMessage]:
    """Explain why an attached domain of a web hosting does not answer.

    Checks the hosting state, the SSL certificate when SSL is enabled on
    the domain, the NS records against the zone's name servers and the
    hosting's email state.

    Args:
        hosting: /hosting/web/{site}.
        attached_domain: /hosting/web/{site}/attachedDomain/{domain}.
        hosting_emails: /hosting/web/{site}/email.
        ssl: {"infos": /ssl or None, "domains": /ssl/domains}.
        dns: {"target": NS record dicts, "real": /domain/zone/{domain}}.
        locale: Target locale.

    Returns:
        A single TextMessage listing the findings.
    """
    domain = attached_domain.get("domain", "")
    lines = [translate("hosting-unreachable", locale, domain, hosting.get("serviceName", ""))]
    findings: list[str] = []

    state = hosting.get("state")
    if state and state != "active":
        findings.append(translate("hosting-state", locale, translate(f"hosting-state-{state}", locale)))

    if attached_domain.get("ssl"):
        infos = ssl.get("infos")
        if infos is None:
            findings.append(translate("hosting-sslMissing", locale, domain))
        elif infos.get("status") != "created":
            findings.append(translate("hosting-sslState", locale, infos.get("status")))
        elif domain not in (ssl.get("domains") or []):
            findings.append(translate("hosting-sslDomainMissing", locale, domain))

    targets = _nameservers([record.get("target", "") for record in dns.get("target") or []])
    real = _nameservers((dns.get("real") or {}).get("nameServers") or [])
    if not targets:
        findings.append(translate("hosting-dnsNoRecord", locale, domain))
    elif real and targets != real:
        findings.append(translate(
            "hosting-dnsMismatch", locale,
            domain, ", ".join(sorted(targets)), ", ".join(sorted(real)),
        ))

    email_state = hosting_emails.get("state")
    if email_state and email_state != "ok":
        findings.append(translate("hosting-emailState", locale, email_state))

    if not findings:
        findings.append(translate("hosting-noIssue", locale))

    return [TextMessage("\n".join(lines + findings))]


# ═══════════════════════════════════════════════════════════
# Telephony
# ═══════════════════════════════════════════════════════════


def telephony_diag(
    billing: dict[str, Any],
    portability: Sequence[dict[str, Any]],
    service_infos: dict[str, Any],
    locale: str,
) -> list[PresentationMessage]:
    """Summarize a telephony billing account.

    Messages: account state with out-of-plan usage, one message per
    number porting (or a "none" line), then the service contract.
    """
    account = billing.get("billingAccount", "")
    lines = [translate(
        "telephony-account", locale,
        billing.get("description") or account,
        account,
        translate(f"telephony-status-{billing.get('status')}", locale),
    )]

    current = billing.get("currentOutplan") or {}
    allowed = billing.get("allowedOutplan") or {}
    if current and allowed:
        lines.append(translate("telephony-outplan", locale, current.get("text"), allowed.get("text")))
        allowed_value = allowed.get("value") or 0
        if allowed_value > 0 and (current.get("value") or 0) >= OUTPLAN_WARNING_RATIO * allowed_value:
            lines.append(translate("telephony-outplanExceeded", locale))

    responses: list[PresentationMessage] = [TextMessage("\n".join(lines))]

    if not portability:
        responses.append(TextMessage(translate("telephony-noPortability", locale)))
    for request in portability:
        porting_lines = [translate(
            "telephony-portability", locale,
            request.get("id"),
            ", ".join(request.get("numbersList") or []),
            _na(request.get("desiredExecutionDate")),
        )]
        for step in request.get("status") or []:
            porting_lines.append(translate(
                "telephony-portabilityStep", locale, step.get("name"), step.get("status"),
            ))
        responses.append(TextMessage("\n".join(porting_lines)))

    if service_infos.get("status") == "unPaid":
        responses.append(TextMessage(translate("telephony-unPaid", locale)))
    expiration = service_infos.get("expiration")
    if expiration:
        responses.append(TextMessage(translate(
            "telephony-serviceInfos", locale,
            translate(f"service-{service_infos.get('status')}", locale),
            format_date(parse_api_datetime(expiration), locale),
            service_infos.get("renewalType", ""),
        )))

    return responses
