"""Heading hierarchy rule."""

from __future__ import annotations

from itertools import pairwise

from bs4 import Tag

from a11y_scan.dom import DocumentAccessor
from a11y_scan.filters import is_applicable
from a11y_scan.rules.base import Level, Principle, Severity, Violation, build_violation

HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6"


class HeadingStructureRule:
    """Headings must be non-empty, start at h1 and never skip a level."""

    rule_id = "heading-structure"
    name = "Headings must follow a logical hierarchy"
    principle: Principle = "perceivable"
    guideline_ref = "1.3.1"
    level: Level = "A"

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        violations: list[Violation] = []
        sequence: list[tuple[Tag, int]] = []

        for index, heading in enumerate(document.query(HEADING_SELECTOR)):
            level = int(heading.name[1])
            # Empty headings are reported even when hidden.
            if not document.text(heading).strip() and not heading.get("aria-label"):
                violations.append(
                    self._violation(
                        document,
                        heading,
                        violation_id=f"heading-empty-{index}",
                        severity="serious",
                        message=f"Empty h{level} heading",
                        description=(
                            f"This h{level} element has no text content. Screen reader users "
                            "navigating by headings will hear an empty heading."
                        ),
                        suggestion="Add descriptive text to the heading or remove the element.",
                    )
                )
                continue
            if not is_applicable(document, heading):
                continue
            sequence.append((heading, level))

        if not sequence:
            return violations

        top_level = [heading for heading, level in sequence if level == 1]
        if not top_level:
            first, first_level = sequence[0]
            violations.append(
                self._violation(
                    document,
                    first,
                    violation_id="heading-missing-h1",
                    severity="serious",
                    message="Page is missing an h1 heading",
                    description=(
                        f"The page has headings but none at level 1; the first heading is "
                        f"h{first_level}. An h1 identifies the main topic of the page."
                    ),
                    suggestion="Add a single h1 that describes the page's main content.",
                )
            )

        for index, extra in enumerate(top_level[1:], start=2):
            violations.append(
                self._violation(
                    document,
                    extra,
                    violation_id=f"heading-multiple-h1-{index}",
                    severity="moderate",
                    message="Multiple h1 headings",
                    description=(
                        f"This is h1 number {index} on the page. Multiple h1 elements make "
                        "the page's main topic ambiguous."
                    ),
                    suggestion="Keep one h1 and demote the others to h2 or lower.",
                )
            )

        for step, ((_previous, previous_level), (current, current_level)) in enumerate(
            pairwise(sequence), start=1
        ):
            if current_level - previous_level > 1:
                violations.append(
                    self._violation(
                        document,
                        current,
                        violation_id=f"heading-skip-{step}",
                        severity="moderate",
                        message=f"Heading level skipped: h{previous_level} to h{current_level}",
                        description=(
                            f"This h{current_level} follows an h{previous_level}, skipping "
                            f"{current_level - previous_level - 1} level(s). Skipped levels "
                            "suggest missing structure to screen reader users."
                        ),
                        suggestion=f"Use an h{previous_level + 1} here or restructure the outline.",
                    )
                )
        return violations

    def _violation(
        self,
        document: DocumentAccessor,
        node: Tag,
        *,
        violation_id: str,
        severity: Severity,
        message: str,
        description: str,
        suggestion: str,
    ) -> Violation:
        return build_violation(
            self,
            document,
            node,
            violation_id=violation_id,
            severity=severity,
            message=message,
            description=description,
            suggestion=suggestion,
            reference="info-and-relationships",
        )
