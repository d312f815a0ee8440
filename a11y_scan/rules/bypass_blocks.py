"""Skip navigation rule."""

from __future__ import annotations

from a11y_scan.dom import DocumentAccessor
from a11y_scan.filters import accessible_name_text
from a11y_scan.rules.base import Level, Principle, Violation, build_violation

NAV_SELECTOR = 'nav, [role="navigation"]'
HEADER_SELECTOR = 'header, [role="banner"]'
SIGNIFICANT_LINK_COUNT = 3


class BypassBlocksRule:
    """Pages with substantial navigation should offer a way to skip it."""

    rule_id = "bypass-blocks"
    name = "Page should have skip navigation link"
    principle: Principle = "operable"
    guideline_ref = "2.4.1"
    level: Level = "A"

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        if not _has_significant_navigation(document):
            return []

        anchors = document.query('a[href^="#"]')
        if anchors:
            first = anchors[0]
            label = f"{document.text(first)} {accessible_name_text(document, first)}"
            if "skip" in label.lower():
                return []

        return [
            build_violation(
                self,
                document,
                document.body,
                violation_id="skip-link-missing",
                severity="moderate",
                message="Page is missing skip navigation link",
                description=(
                    'The page does not appear to have a "skip to main content" link. '
                    "Keyboard users must tab through the navigation on every page."
                ),
                suggestion=(
                    'Add a "Skip to main content" link at the start of the page that '
                    "targets the main content area."
                ),
                reference="bypass-blocks",
                snippet="<body>",
            )
        ]


def _has_significant_navigation(document: DocumentAccessor) -> bool:
    # Only links count; a nav nested in a header is not a fourth item.
    for region in document.query(f"{NAV_SELECTOR}, {HEADER_SELECTOR}"):
        if len(document.query("a[href]", within=region)) > SIGNIFICANT_LINK_COUNT:
            return True
    return False
