"""Missing image alternative text rule."""

from __future__ import annotations

from a11y_scan.dom import DocumentAccessor
from a11y_scan.filters import has_accessible_name, is_applicable
from a11y_scan.rules.base import Level, Principle, Violation, build_violation


class ImageAltTextRule:
    """All images must have alt attributes to provide text alternatives for screen readers."""

    rule_id = "image-alt-text"
    name = "Images must have alternative text"
    principle: Principle = "perceivable"
    guideline_ref = "1.1.1"
    level: Level = "A"

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        violations: list[Violation] = []
        for index, image in enumerate(document.query("img")):
            if not is_applicable(document, image):
                continue
            if has_accessible_name(image):
                continue
            title = image.get("title")
            if image.get("alt") is not None or (isinstance(title, str) and title.strip()):
                continue
            violations.append(
                build_violation(
                    self,
                    document,
                    image,
                    violation_id=f"image-alt-{index}",
                    severity="critical",
                    message="Image missing alt attribute",
                    description=(
                        "This image does not have an alt attribute. Screen reader users "
                        "cannot understand what this image conveys."
                    ),
                    suggestion=(
                        'Add an alt attribute with descriptive text. If the image is '
                        'decorative, use alt="". aria-label is also accepted.'
                    ),
                    reference="non-text-content",
                )
            )
        return violations
