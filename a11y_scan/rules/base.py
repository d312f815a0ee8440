"""Base rule protocol and violation model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from bs4 import Tag

from a11y_scan.dom import DocumentAccessor

Principle = Literal["perceivable", "operable", "understandable", "robust"]
Level = Literal["A", "AA", "AAA"]
Severity = Literal["critical", "serious", "moderate", "minor"]

PRINCIPLES: tuple[Principle, ...] = ("perceivable", "operable", "understandable", "robust")
LEVELS: tuple[Level, ...] = ("A", "AA", "AAA")
SEVERITIES: tuple[Severity, ...] = ("critical", "serious", "moderate", "minor")

UNDERSTANDING_BASE_URL = "https://www.w3.org/WAI/WCAG22/Understanding/"


@dataclass(frozen=True, slots=True)
class Violation:
    """A single accessibility issue found by a rule."""

    id: str
    rule_id: str
    principle: Principle
    guideline_ref: str
    level: Level
    severity: Severity
    message: str
    description: str
    locator: str
    snippet: str
    suggestion: str | None = None
    reference_url: str | None = None

    def __post_init__(self) -> None:
        if self.severity not in SEVERITIES:
            raise ValueError(f"Unknown severity: {self.severity}")
        if self.principle not in PRINCIPLES:
            raise ValueError(f"Unknown principle: {self.principle}")
        if self.level not in LEVELS:
            raise ValueError(f"Unknown level: {self.level}")


class Rule(Protocol):
    """Protocol for a single guideline check."""

    rule_id: str
    name: str
    principle: Principle
    guideline_ref: str
    level: Level

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        """Evaluate the document and return violations."""


def build_violation(
    rule: Rule,
    document: DocumentAccessor,
    node: Tag,
    *,
    violation_id: str,
    severity: Severity,
    message: str,
    description: str,
    suggestion: str | None = None,
    reference: str | None = None,
    snippet: str | None = None,
) -> Violation:
    """Create a violation anchored to ``node`` with the rule's metadata.

    ``reference`` is the slug of the criterion's Understanding page.
    """
    return Violation(
        id=violation_id,
        rule_id=rule.rule_id,
        principle=rule.principle,
        guideline_ref=rule.guideline_ref,
        level=rule.level,
        severity=severity,
        message=message,
        description=description,
        locator=document.locate(node),
        snippet=snippet if snippet is not None else document.snippet(node),
        suggestion=suggestion,
        reference_url=f"{UNDERSTANDING_BASE_URL}{reference}.html" if reference else None,
    )
