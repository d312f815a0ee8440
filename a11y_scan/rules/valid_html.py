"""Duplicate identifier rule."""

from __future__ import annotations

from bs4 import Tag

from a11y_scan.dom import DocumentAccessor
from a11y_scan.filters import describe_node, is_applicable
from a11y_scan.rules.base import Level, Principle, Violation, build_violation


class ValidHtmlRule:
    """Element ids must be unique within the page."""

    rule_id = "valid-html"
    name = "HTML must be well-formed"
    principle: Principle = "robust"
    guideline_ref = "4.1.1"
    level: Level = "A"

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        groups: dict[str, list[Tag]] = {}
        for element in document.query("[id]"):
            identifier = element.get("id")
            if not isinstance(identifier, str) or not identifier:
                continue
            if not is_applicable(document, element):
                continue
            groups.setdefault(identifier, []).append(element)

        violations: list[Violation] = []
        for identifier, elements in groups.items():
            if len(elements) < 2:
                continue
            locations = ", ".join(
                f"{position}. {describe_node(element)}"
                for position, element in enumerate(elements, start=1)
            )
            violations.append(
                build_violation(
                    self,
                    document,
                    elements[0],
                    violation_id=f"duplicate-id-{identifier}",
                    severity="serious",
                    message=f'Duplicate ID: "{identifier}"',
                    description=(
                        f'The ID "{identifier}" is used {len(elements)} times on the page. '
                        f"IDs must be unique. Found in: {locations}"
                    ),
                    suggestion=(
                        "Use each ID once per page. Use classes for shared styling, or add "
                        "unique suffixes to generated IDs."
                    ),
                    reference="parsing",
                )
            )
        return violations
