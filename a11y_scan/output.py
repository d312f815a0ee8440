"""Output rendering and export."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Any

import click

from a11y_scan.rules.base import PRINCIPLES, SEVERITIES, Severity, Violation
from a11y_scan.scanner import ScanResult, ScanSummary

SORT_ORDERS = ("default", "severity", "principle")

_SEVERITY_COLORS = {
    "critical": "red",
    "serious": "magenta",
    "moderate": "yellow",
    "minor": "cyan",
}

_OPTIONAL_VIOLATION_KEYS = (
    ("suggestion", "suggestion"),
    ("reference_url", "referenceUrl"),
)


def render_human(result: ScanResult) -> str:
    """Render a compact colorized summary."""
    summary = result.summary
    headline_color = "green" if summary.total == 0 else _SEVERITY_COLORS[_worst(summary)]
    lines: list[str] = [
        click.style(
            f"Accessibility scan of {result.source_url}: {summary.total} violations",
            fg=headline_color,
            bold=True,
        ),
        "  "
        + ", ".join(
            click.style(f"{getattr(summary, severity)} {severity}", fg=_SEVERITY_COLORS[severity])
            for severity in SEVERITIES
        ),
        "  "
        + ", ".join(
            f"{principle}: {summary.by_principle.get(principle, 0)}" for principle in PRINCIPLES
        ),
    ]

    if result.failed_rules:
        lines.append(
            click.style(f"Rules that failed to run: {', '.join(result.failed_rules)}", fg="red")
        )

    if result.violations:
        lines.append(click.style("Violations:", bold=True))
        for index, violation in enumerate(result.violations, start=1):
            severity = click.style(
                violation.severity.upper(), fg=_SEVERITY_COLORS[violation.severity]
            )
            lines.append(
                f"{index}. {severity} [{violation.rule_id}] "
                f"{violation.guideline_ref} ({violation.level}) {violation.message}"
            )
            lines.append(f"   locator: {violation.locator}")
            lines.append(f"   element: {_one_line(violation.snippet)}")
            if violation.suggestion:
                lines.append(f"   fix: {violation.suggestion}")
    return "\n".join(lines)


def render_json(result: ScanResult) -> str:
    """Render the export document."""
    return json.dumps(build_export_payload(result), indent=2)


def build_export_payload(result: ScanResult) -> dict[str, Any]:
    """Build the export document; per-rule diagnostics are not included."""
    return {
        "timestamp": _format_timestamp(result.timestamp),
        "url": result.source_url,
        "summary": result.summary.to_dict(),
        "violations": [_serialize_violation(item) for item in result.violations],
    }


def parse_export(text: str) -> ScanResult:
    """Rebuild a scan result from an exported document.

    Raises ``ValueError`` when the document is not a valid export.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid export JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Export must be a JSON object")

    raw_violations = payload.get("violations")
    if not isinstance(raw_violations, list):
        raise ValueError("violations must be a list")

    return ScanResult(
        source_url=_as_str(payload.get("url"), "url"),
        timestamp=_parse_timestamp(_as_str(payload.get("timestamp"), "timestamp")),
        violations=tuple(_parse_violation(item) for item in raw_violations),
        summary=_parse_summary(payload.get("summary")),
    )


def sort_violations(violations: Iterable[Violation], order: str = "default") -> list[Violation]:
    """Return violations in the requested order. Ties keep their original order."""
    if order == "default":
        return list(violations)
    if order == "severity":
        return sorted(violations, key=lambda item: SEVERITIES.index(item.severity))
    if order == "principle":
        return sorted(violations, key=lambda item: PRINCIPLES.index(item.principle))
    choices = ", ".join(SORT_ORDERS)
    raise ValueError(f"Unknown sort order '{order}'. Expected one of: {choices}")


def severity_at_least(violations: Sequence[Violation], threshold: Severity) -> bool:
    """True when any violation is at least as severe as ``threshold``."""
    limit = SEVERITIES.index(threshold)
    return any(SEVERITIES.index(item.severity) <= limit for item in violations)


def _serialize_violation(violation: Violation) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": violation.id,
        "ruleId": violation.rule_id,
        "principle": violation.principle,
        "guidelineRef": violation.guideline_ref,
        "level": violation.level,
        "severity": violation.severity,
        "message": violation.message,
        "description": violation.description,
        "locator": violation.locator,
        "snippet": violation.snippet,
    }
    for attribute, key in _OPTIONAL_VIOLATION_KEYS:
        value = getattr(violation, attribute)
        if value is not None:
            payload[key] = value
    return payload


def _parse_violation(value: Any) -> Violation:
    if not isinstance(value, dict):
        raise ValueError("Each violation must be an object")
    return Violation(
        id=_as_str(value.get("id"), "violation.id"),
        rule_id=_as_str(value.get("ruleId"), "violation.ruleId"),
        principle=_as_str(value.get("principle"), "violation.principle"),
        guideline_ref=_as_str(value.get("guidelineRef"), "violation.guidelineRef"),
        level=_as_str(value.get("level"), "violation.level"),
        severity=_as_str(value.get("severity"), "violation.severity"),
        message=_as_str(value.get("message"), "violation.message"),
        description=_as_str(value.get("description"), "violation.description"),
        locator=_as_str(value.get("locator"), "violation.locator"),
        snippet=_as_str(value.get("snippet"), "violation.snippet"),
        suggestion=_as_optional_str(value.get("suggestion"), "violation.suggestion"),
        reference_url=_as_optional_str(value.get("referenceUrl"), "violation.referenceUrl"),
    )


def _parse_summary(value: Any) -> ScanSummary:
    if not isinstance(value, dict):
        raise ValueError("summary must be an object")
    by_principle = value.get("byPrinciple")
    if not isinstance(by_principle, dict):
        raise ValueError("summary.byPrinciple must be an object")
    return ScanSummary(
        total=_as_int(value.get("total"), "summary.total"),
        critical=_as_int(value.get("critical"), "summary.critical"),
        serious=_as_int(value.get("serious"), "summary.serious"),
        moderate=_as_int(value.get("moderate"), "summary.moderate"),
        minor=_as_int(value.get("minor"), "summary.minor"),
        by_principle={
            principle: _as_int(by_principle.get(principle), f"summary.byPrinciple.{principle}")
            for principle in PRINCIPLES
        },
    )


def _format_timestamp(timestamp_ms: int) -> str:
    moment = datetime.fromtimestamp(timestamp_ms // 1000, tz=UTC).replace(
        microsecond=(timestamp_ms % 1000) * 1000
    )
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_timestamp(value: str) -> int:
    try:
        moment = datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"Invalid timestamp: {value}") from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    whole_seconds = int(moment.replace(microsecond=0).timestamp())
    return whole_seconds * 1000 + moment.microsecond // 1000


def _worst(summary: ScanSummary) -> str:
    for severity in SEVERITIES:
        if getattr(summary, severity):
            return severity
    return "minor"


def _one_line(snippet: str) -> str:
    return " ".join(snippet.split())


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_optional_str(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    return _as_str(value, field_name)


def _as_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    return value
