"""Radio and checkbox grouping rule."""

from __future__ import annotations

from bs4 import Tag

from a11y_scan.dom import DocumentAccessor
from a11y_scan.filters import is_applicable
from a11y_scan.rules.base import Level, Principle, Severity, Violation, build_violation

# (input type, noun, minimum group size, severity)
GROUP_KINDS: tuple[tuple[str, str, int, Severity], ...] = (
    ("radio", "radio buttons", 2, "serious"),
    ("checkbox", "checkboxes", 3, "moderate"),
)


class FieldsetLegendRule:
    """Groups of radio buttons and checkboxes should sit in a fieldset with a legend."""

    rule_id = "fieldset-legend"
    name = "Related form controls must be grouped"
    principle: Principle = "understandable"
    guideline_ref = "1.3.1"
    level: Level = "A"

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        violations: list[Violation] = []
        for input_type, noun, minimum, severity in GROUP_KINDS:
            for name, inputs in _group_by_name(document, input_type).items():
                if len(inputs) < minimum:
                    continue
                violation = self._check_group(
                    document,
                    inputs,
                    input_type=input_type,
                    noun=noun,
                    name=name,
                    severity=severity,
                )
                if violation is not None:
                    violations.append(violation)
        return violations

    def _check_group(
        self,
        document: DocumentAccessor,
        inputs: list[Tag],
        *,
        input_type: str,
        noun: str,
        name: str,
        severity: Severity,
    ) -> Violation | None:
        first = inputs[0]
        fieldsets = [item.find_parent("fieldset") for item in inputs]
        shared = fieldsets[0]
        if shared is None or any(fieldset is not shared for fieldset in fieldsets):
            return build_violation(
                self,
                document,
                first,
                violation_id=f"fieldset-{input_type}-{name}",
                severity=severity,
                message=f'{input_type.capitalize()} group "{name}" not in fieldset',
                description=(
                    f'This group of {len(inputs)} {noun} (name: "{name}") is not grouped by '
                    "a single <fieldset> with a <legend>. Screen reader users may not "
                    "understand that these options are related."
                ),
                suggestion=(
                    f"Wrap all {noun} in this group with a <fieldset> and add a <legend> "
                    "that describes the group."
                ),
                reference="info-and-relationships",
            )

        legend = shared.find("legend")
        if isinstance(legend, Tag) and document.text(legend).strip():
            return None
        return build_violation(
            self,
            document,
            first,
            violation_id=f"fieldset-legend-{input_type}-{name}",
            severity=severity,
            message=f'Fieldset missing legend for {input_type} group "{name}"',
            description=(
                f'The <fieldset> containing {noun} (name: "{name}") has no <legend>, or the '
                "legend is empty. The legend describes the group to screen reader users."
            ),
            suggestion=(
                "Add a <legend> as the first child of the <fieldset> describing what the "
                "options represent."
            ),
            reference="info-and-relationships",
            snippet=document.snippet(shared),
        )


def _group_by_name(document: DocumentAccessor, input_type: str) -> dict[str, list[Tag]]:
    groups: dict[str, list[Tag]] = {}
    for control in document.query(f'input[type="{input_type}"]'):
        if not is_applicable(document, control):
            continue
        name = control.get("name")
        if isinstance(name, str) and name:
            groups.setdefault(name, []).append(control)
    return groups
