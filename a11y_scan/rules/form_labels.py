"""Form label presence rule."""

from __future__ import annotations

from a11y_scan.dom import DocumentAccessor
from a11y_scan.filters import FORM_CONTROL_SELECTOR, find_label, has_accessible_name, is_applicable
from a11y_scan.rules.base import Level, Principle, Violation, build_violation


class FormLabelsRule:
    """All form fields must be labeled so users know what information to provide."""

    rule_id = "form-labels"
    name = "Form inputs must have labels or instructions"
    principle: Principle = "understandable"
    guideline_ref = "3.3.2"
    level: Level = "A"

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        violations: list[Violation] = []
        for index, control in enumerate(document.query(FORM_CONTROL_SELECTOR)):
            if not is_applicable(document, control):
                continue
            if find_label(document, control) is not None:
                continue

            if control.name == "input":
                control_type = control.get("type") or "text"
            else:
                control_type = control.name
            control_name = control.get("name") or "unknown"
            if has_accessible_name(control):
                aria_label = control.get("aria-label") or ""
                violations.append(
                    build_violation(
                        self,
                        document,
                        control,
                        violation_id=f"form-label-aria-only-{index}",
                        severity="moderate",
                        message="Form input has aria-label but no visible label",
                        description=(
                            f'This {control_type} input (name: "{control_name}") is named by '
                            f'ARIA (aria-label="{aria_label}") but has no visible label. '
                            "Visible labels help everyone, including users with cognitive "
                            "disabilities, and enlarge the click target."
                        ),
                        suggestion=(
                            "Add a visible <label> element. The aria-label can stay as "
                            "supplementary information."
                        ),
                        reference="labels-or-instructions",
                    )
                )
                continue

            violations.append(
                build_violation(
                    self,
                    document,
                    control,
                    violation_id=f"form-label-{index}",
                    severity="critical",
                    message="Form input missing label",
                    description=(
                        f'This {control_type} input (name: "{control_name}") has no associated '
                        "label. Screen reader users need labels to know what to enter."
                    ),
                    suggestion=(
                        'Add a <label> whose "for" attribute matches the input\'s id, or wrap '
                        "the input in a <label>. aria-label or aria-labelledby also work."
                    ),
                    reference="labels-or-instructions",
                )
            )
        return violations
