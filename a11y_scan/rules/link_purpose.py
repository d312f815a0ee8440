"""Link text purpose rule."""

from __future__ import annotations

from a11y_scan.dom import DocumentAccessor
from a11y_scan.filters import has_accessible_name, is_applicable
from a11y_scan.rules.base import Level, Principle, Violation, build_violation

VAGUE_LINK_TEXTS = {"click here", "read more", "more", "here", "link", "this"}


class LinkPurposeRule:
    """Link text should clearly describe the link's destination or purpose."""

    rule_id = "link-purpose"
    name = "Links must have descriptive text"
    principle: Principle = "operable"
    guideline_ref = "2.4.4"
    level: Level = "A"

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        violations: list[Violation] = []
        for index, link in enumerate(document.query("a[href]")):
            if not is_applicable(document, link):
                continue
            text = document.text(link).strip().lower()
            if has_accessible_name(link):
                continue

            if not text:
                violations.append(
                    build_violation(
                        self,
                        document,
                        link,
                        violation_id=f"link-empty-{index}",
                        severity="serious",
                        message="Link has no text",
                        description=(
                            "This link has no visible text or aria-label, so screen reader "
                            "users cannot tell where it leads."
                        ),
                        suggestion=(
                            "Add descriptive text inside the link or use aria-label to "
                            "describe the destination."
                        ),
                        reference="link-purpose-in-context",
                    )
                )
            elif text in VAGUE_LINK_TEXTS:
                violations.append(
                    build_violation(
                        self,
                        document,
                        link,
                        violation_id=f"link-vague-{index}",
                        severity="moderate",
                        message="Link has vague text",
                        description=(
                            f'The link text "{text}" is not descriptive enough. Users should '
                            "understand where the link leads from the text alone."
                        ),
                        suggestion=(
                            "Use link text that names the destination or purpose of the link."
                        ),
                        reference="link-purpose-in-context",
                    )
                )
        return violations
