"""Focus order and tabindex rule."""

from __future__ import annotations

from bs4 import Tag

from a11y_scan.dom import DocumentAccessor
from a11y_scan.filters import (
    NATURALLY_FOCUSABLE,
    accessible_name_text,
    is_applicable,
    is_visually_hidden,
    tab_order,
)
from a11y_scan.rules.base import Level, Principle, Violation, build_violation


class FocusOrderRule:
    """Focusable elements must receive focus in an order that preserves meaning."""

    rule_id = "focus-order"
    name = "Focus order must be logical"
    principle: Principle = "operable"
    guideline_ref = "2.4.3"
    level: Level = "A"

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        violations: list[Violation] = []
        for index, node in enumerate(document.query("[tabindex]")):
            order = tab_order(node)
            if order is None:
                continue

            # Runs before the applicability filter, which would drop hidden nodes.
            if order >= 0 and is_visually_hidden(document, node):
                violations.append(
                    build_violation(
                        self,
                        document,
                        node,
                        violation_id=f"focus-hidden-{index}",
                        severity="moderate",
                        message="Focusable element is hidden",
                        description=(
                            f'This {node.name} element has tabindex="{order}" but is not '
                            "visible. Keyboard users will land on an invisible focus stop."
                        ),
                        suggestion=(
                            'Remove the element from the tab order with tabindex="-1" while '
                            "it is hidden, or make it visible when focused."
                        ),
                        reference="focus-order",
                    )
                )
                continue

            if not is_applicable(document, node):
                continue

            if order > 0:
                violations.append(
                    build_violation(
                        self,
                        document,
                        node,
                        violation_id=f"focus-positive-{index}",
                        severity="serious",
                        message="Positive tabindex disrupts focus order",
                        description=(
                            f'This {node.name} element uses tabindex="{order}". Positive '
                            "values move the element ahead of the natural reading order."
                        ),
                        suggestion=(
                            'Use tabindex="0" and arrange the markup in the intended order.'
                        ),
                        reference="focus-order",
                    )
                )
            elif order == -1 and node.name in NATURALLY_FOCUSABLE:
                if _has_skip_hint(document, node):
                    continue
                violations.append(
                    build_violation(
                        self,
                        document,
                        node,
                        violation_id=f"focus-removed-{index}",
                        severity="minor",
                        message="Native control removed from tab order",
                        description=(
                            f'This {node.name} element is natively focusable but has '
                            'tabindex="-1", so keyboard users cannot reach it.'
                        ),
                        suggestion=(
                            "Remove the tabindex attribute unless the control is "
                            "intentionally unreachable."
                        ),
                        reference="focus-order",
                    )
                )
        return violations


def _has_skip_hint(document: DocumentAccessor, node: Tag) -> bool:
    text = f"{document.text(node)} {accessible_name_text(document, node)}"
    return "skip" in text.lower()
