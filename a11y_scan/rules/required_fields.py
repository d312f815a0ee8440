"""Required field indication rule."""

from __future__ import annotations

import re

from a11y_scan.dom import DocumentAccessor
from a11y_scan.filters import FORM_CONTROL_SELECTOR, find_label, is_applicable
from a11y_scan.rules.base import Level, Principle, Violation, build_violation

REQUIRED_HINT_RE = re.compile(r"\*|required|mandatory|obligatory", re.IGNORECASE)
LABEL_EXCERPT = 50


class RequiredFieldsRule:
    """Required fields must be indicated programmatically, not only visually."""

    rule_id = "required-fields"
    name = "Required fields must be clearly indicated"
    principle: Principle = "understandable"
    guideline_ref = "3.3.2"
    level: Level = "A"

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        violations: list[Violation] = []
        for index, control in enumerate(document.query(FORM_CONTROL_SELECTOR)):
            if not is_applicable(document, control):
                continue
            if control.has_attr("required") or control.get("aria-required") == "true":
                continue

            label = find_label(document, control)
            label_text = document.text(label).strip() if label is not None else ""
            if not REQUIRED_HINT_RE.search(label_text):
                continue

            excerpt = label_text[:LABEL_EXCERPT]
            if len(label_text) > LABEL_EXCERPT:
                excerpt += "..."
            control_type = control.get("type") or control.name
            control_name = control.get("name") or "unknown"
            violations.append(
                build_violation(
                    self,
                    document,
                    control,
                    violation_id=f"required-field-{index}",
                    severity="serious",
                    message="Required field not programmatically indicated",
                    description=(
                        f'This {control_type} input (name: "{control_name}") looks required '
                        f'from its label ("{excerpt}") but has neither the required attribute '
                        'nor aria-required="true". Screen reader users may not know the '
                        "field is required."
                    ),
                    suggestion=(
                        'Add the "required" attribute, or aria-required="true", so screen '
                        "readers announce the field as required."
                    ),
                    reference="labels-or-instructions",
                )
            )
        return violations
