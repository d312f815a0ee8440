"""Text color contrast rule."""

from __future__ import annotations

from a11y_scan.contrast import evaluate_contrast
from a11y_scan.dom import DocumentAccessor
from a11y_scan.filters import is_applicable
from a11y_scan.rules.base import Level, Principle, Violation, build_violation

TEXT_SELECTOR = "p, h1, h2, h3, h4, h5, h6, a, li, td, th, label, button"


class ColorContrastRule:
    """Text needs a contrast ratio of at least 4.5:1, or 3:1 for large text."""

    rule_id = "color-contrast"
    name = "Text must have sufficient color contrast"
    principle: Principle = "perceivable"
    guideline_ref = "1.4.3"
    level: Level = "AA"

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        violations: list[Violation] = []
        for element in document.query(TEXT_SELECTOR):
            if not is_applicable(document, element):
                continue
            sample = evaluate_contrast(document, element)
            if sample is None or sample.passes:
                continue

            required = sample.requirement.ratio
            violations.append(
                build_violation(
                    self,
                    document,
                    element,
                    violation_id=f"contrast-{element.name}-{len(violations)}",
                    severity=sample.severity,
                    message="Insufficient color contrast",
                    description=(
                        f"Text has a contrast ratio of {sample.ratio:.2f}:1, but requires "
                        f"{required}:1. Color: {sample.foreground}, "
                        f"Background: {sample.background}"
                    ),
                    suggestion=(
                        f"Increase contrast to at least {required}:1. Consider a darker "
                        "text color or a lighter background."
                    ),
                    reference="contrast-minimum",
                )
            )
        return violations
