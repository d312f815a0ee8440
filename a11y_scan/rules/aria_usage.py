"""Button accessible name rule."""

from __future__ import annotations

from a11y_scan.dom import DocumentAccessor
from a11y_scan.filters import has_accessible_name, is_applicable
from a11y_scan.rules.base import Level, Principle, Violation, build_violation

BUTTON_SELECTOR = 'button, [role="button"]'
NAMED_CONTENT_SELECTOR = "img[alt], [aria-label], [aria-labelledby]"


class AriaUsageRule:
    """Buttons must expose a name to assistive technology."""

    rule_id = "aria-usage"
    name = "ARIA attributes must be used correctly"
    principle: Principle = "robust"
    guideline_ref = "4.1.2"
    level: Level = "A"

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        violations: list[Violation] = []
        for index, button in enumerate(document.query(BUTTON_SELECTOR)):
            if not is_applicable(document, button):
                continue
            if document.text(button).strip() or has_accessible_name(button):
                continue
            if document.query(NAMED_CONTENT_SELECTOR, within=button):
                continue
            violations.append(
                build_violation(
                    self,
                    document,
                    button,
                    violation_id=f"button-no-name-{index}",
                    severity="critical",
                    message="Button has no accessible name",
                    description=(
                        "This button has no visible text or aria-label, so screen readers "
                        "cannot announce its purpose."
                    ),
                    suggestion=(
                        "Add visible text inside the button, or use aria-label to give it "
                        "an accessible name."
                    ),
                    reference="name-role-value",
                )
            )
        return violations
