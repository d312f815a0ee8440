"""Keyboard reachability rule for script-driven click targets."""

from __future__ import annotations

from bs4 import Tag

from a11y_scan.dom import DocumentAccessor
from a11y_scan.filters import NATURALLY_FOCUSABLE, is_applicable, tab_order
from a11y_scan.rules.base import Level, Principle, Violation, build_violation

CLICK_HANDLER_ATTRIBUTES = ("onclick", "ng-click", "data-ng-click", "v-on:click", "@click")


class KeyboardAccessibleRule:
    """All functionality must be operable through a keyboard interface."""

    rule_id = "keyboard-accessible"
    name = "Interactive elements must be keyboard accessible"
    principle: Principle = "operable"
    guideline_ref = "2.1.1"
    level: Level = "A"

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        violations: list[Violation] = []
        flagged: set[int] = set()
        nodes = document.query("body *")

        for index, node in enumerate(nodes):
            if not any(node.has_attr(attribute) for attribute in CLICK_HANDLER_ATTRIBUTES):
                continue
            if not is_applicable(document, node) or _is_keyboard_reachable(node):
                continue
            flagged.add(id(node))
            violations.append(
                build_violation(
                    self,
                    document,
                    node,
                    violation_id=f"keyboard-{index}",
                    severity="serious",
                    message="Interactive element not keyboard accessible",
                    description=(
                        f"This {node.name} element has click handlers but cannot be "
                        "reached with the keyboard."
                    ),
                    suggestion=(
                        'Add tabindex="0" and keyboard event handlers, or use a <button> '
                        "element instead."
                    ),
                    reference="keyboard",
                )
            )

        for index, node in enumerate(nodes):
            if id(node) in flagged or not _declares_pointer_cursor(document, node):
                continue
            if not is_applicable(document, node) or _is_keyboard_reachable(node):
                continue
            violations.append(
                build_violation(
                    self,
                    document,
                    node,
                    violation_id=f"keyboard-pointer-{index}",
                    severity="serious",
                    message="Clickable-looking element not keyboard accessible",
                    description=(
                        f"This {node.name} element uses a pointer cursor, suggesting it is "
                        "clickable, but it cannot be reached with the keyboard."
                    ),
                    suggestion=(
                        'Use a native <button> or <a href>, or add tabindex="0", an '
                        "appropriate role and keyboard handlers."
                    ),
                    reference="keyboard",
                )
            )
        return violations


def _is_keyboard_reachable(node: Tag) -> bool:
    if node.name in NATURALLY_FOCUSABLE:
        return True
    order = tab_order(node)
    return order is not None and order >= 0


def _declares_pointer_cursor(document: DocumentAccessor, node: Tag) -> bool:
    # cursor inherits; only the element that introduces the pointer is reported.
    if document.computed_style(node).cursor != "pointer":
        return False
    parent = node.parent
    if not isinstance(parent, Tag):
        return True
    return document.computed_style(parent).cursor != "pointer"
