"""Scan orchestration."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any

from a11y_scan.dom import DEFAULT_VIEWPORT, DocumentAccessor, HtmlDocument
from a11y_scan.rules import default_rules
from a11y_scan.rules.base import PRINCIPLES, SEVERITIES, Rule, Violation

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RuleRun:
    """Per-rule execution record. Failures land here, never as violations."""

    rule_id: str
    status: str
    reason: str
    elapsed_ms: int
    violations: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "rule_id": self.rule_id,
            "status": self.status,
            "reason": self.reason,
            "elapsed_ms": self.elapsed_ms,
            "violations": self.violations,
        }


@dataclass(frozen=True, slots=True)
class ScanSummary:
    """Violation counts by severity and by principle."""

    total: int
    critical: int
    serious: int
    moderate: int
    minor: int
    by_principle: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "by_principle", MappingProxyType(dict(self.by_principle)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "critical": self.critical,
            "serious": self.serious,
            "moderate": self.moderate,
            "minor": self.minor,
            "byPrinciple": dict(self.by_principle),
        }


@dataclass(frozen=True, slots=True)
class ScanResult:
    """One completed audit of a document."""

    source_url: str
    timestamp: int
    violations: tuple[Violation, ...]
    summary: ScanSummary
    rule_runs: tuple[RuleRun, ...] = ()

    @property
    def failed_rules(self) -> list[str]:
        return [run.rule_id for run in self.rule_runs if run.status == "failed"]


class Scanner:
    """Runs a fixed, ordered list of rules against documents."""

    def __init__(self, rules: Sequence[Rule] | None = None) -> None:
        self._rules: tuple[Rule, ...] = tuple(rules if rules is not None else default_rules())

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def scan(self, document: DocumentAccessor, *, source_url: str = "unknown") -> ScanResult:
        """Run every rule once, isolating per-rule failures."""
        document.locators.reset()
        violations: list[Violation] = []
        runs: list[RuleRun] = []

        for rule in self._rules:
            start = time.perf_counter()
            try:
                found = rule.evaluate(document)
            except Exception as exc:
                runs.append(
                    RuleRun(
                        rule_id=rule.rule_id,
                        status="failed",
                        reason=f"{exc.__class__.__name__}: {exc}",
                        elapsed_ms=_elapsed_ms(start),
                    )
                )
                logger.warning(f"[Scanner] Rule {rule.rule_id} failed: {exc}", exc_info=True)
                continue
            violations.extend(found)
            runs.append(
                RuleRun(
                    rule_id=rule.rule_id,
                    status="ran",
                    reason="completed",
                    elapsed_ms=_elapsed_ms(start),
                    violations=len(found),
                )
            )
            logger.debug(f"[Scanner] {rule.rule_id}: {len(found)} violations")

        summary = summarize(violations)
        logger.info(
            f"[Scanner] Scan of {source_url} complete: {summary.total} violations "
            f"({summary.critical} critical, {summary.serious} serious)"
        )
        return ScanResult(
            source_url=source_url,
            timestamp=_now_ms(),
            violations=tuple(violations),
            summary=summary,
            rule_runs=tuple(runs),
        )


def scan_document(
    document: DocumentAccessor,
    rules: Sequence[Rule] | None = None,
    *,
    source_url: str = "unknown",
) -> ScanResult:
    """Scan an already loaded document."""
    return Scanner(rules).scan(document, source_url=source_url)


def scan_html(
    markup: str | bytes,
    rules: Sequence[Rule] | None = None,
    *,
    source_url: str = "about:blank",
    viewport: tuple[int, int] = DEFAULT_VIEWPORT,
) -> ScanResult:
    """Parse and scan HTML markup."""
    document = HtmlDocument(markup, viewport=viewport)
    return scan_document(document, rules, source_url=source_url)


def scan_file(
    path: Path,
    rules: Sequence[Rule] | None = None,
    *,
    source_url: str | None = None,
    viewport: tuple[int, int] = DEFAULT_VIEWPORT,
) -> ScanResult:
    """Read, parse and scan an HTML file."""
    document = HtmlDocument.from_file(path, viewport=viewport)
    return scan_document(document, rules, source_url=source_url or path.resolve().as_uri())


def summarize(violations: Sequence[Violation]) -> ScanSummary:
    by_severity = {severity: 0 for severity in SEVERITIES}
    by_principle = {principle: 0 for principle in PRINCIPLES}
    for violation in violations:
        by_severity[violation.severity] += 1
        by_principle[violation.principle] += 1
    return ScanSummary(
        total=len(violations),
        critical=by_severity["critical"],
        serious=by_severity["serious"],
        moderate=by_severity["moderate"],
        minor=by_severity["minor"],
        by_principle=by_principle,
    )


def _now_ms() -> int:
    return int(datetime.now(tz=UTC).timestamp() * 1000)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
