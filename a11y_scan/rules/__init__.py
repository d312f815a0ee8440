"""Rules package."""

from dataclasses import dataclass

from a11y_scan.rules.aria_usage import AriaUsageRule
from a11y_scan.rules.base import LEVELS, PRINCIPLES, Level, Principle, Rule
from a11y_scan.rules.bypass_blocks import BypassBlocksRule
from a11y_scan.rules.color_contrast import ColorContrastRule
from a11y_scan.rules.fieldset_legend import FieldsetLegendRule
from a11y_scan.rules.focus_order import FocusOrderRule
from a11y_scan.rules.form_labels import FormLabelsRule
from a11y_scan.rules.heading_structure import HeadingStructureRule
from a11y_scan.rules.image_alt_text import ImageAltTextRule
from a11y_scan.rules.keyboard_accessible import KeyboardAccessibleRule
from a11y_scan.rules.link_purpose import LinkPurposeRule
from a11y_scan.rules.required_fields import RequiredFieldsRule
from a11y_scan.rules.valid_html import ValidHtmlRule

DEFAULT_TARGET_LEVEL: Level = "AA"


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing and selection."""

    rule_id: str
    name: str
    description: str
    principle: Principle
    guideline_ref: str
    level: Level
    default_enabled: bool


@dataclass(frozen=True, slots=True)
class _RuleSpec:
    rule_id: str
    factory: type[Rule]
    name: str
    description: str
    principle: Principle
    guideline_ref: str
    level: Level


_RULE_CLASSES: tuple[type[Rule], ...] = (
    ImageAltTextRule,
    ColorContrastRule,
    HeadingStructureRule,
    KeyboardAccessibleRule,
    FocusOrderRule,
    LinkPurposeRule,
    BypassBlocksRule,
    FormLabelsRule,
    FieldsetLegendRule,
    RequiredFieldsRule,
    ValidHtmlRule,
    AriaUsageRule,
)


def default_rules() -> list[Rule]:
    """Return the default rule set."""
    return build_rules()


def build_rules(
    *,
    enabled_rule_ids: list[str] | None = None,
    disabled_rule_ids: list[str] | None = None,
    principles: list[str] | None = None,
    target_level: str = DEFAULT_TARGET_LEVEL,
) -> list[Rule]:
    """Build rule instances in registry order, applying level, principle and id filters."""
    specs = _ordered_rule_specs()
    registry = {spec.rule_id: spec for spec in specs}
    disabled_set = set(disabled_rule_ids or [])
    requested_ids = set(enabled_rule_ids or []) | disabled_set

    unknown = [rule_id for rule_id in requested_ids if rule_id not in registry]
    if unknown:
        joined = ", ".join(sorted(unknown))
        raise ValueError(f"Unknown rule ids: {joined}")

    candidate_set = set(
        _candidate_rule_ids(
            specs=specs,
            principles=resolve_principles(principles),
            target_level=_resolve_level(target_level),
        )
    )
    if enabled_rule_ids is None:
        selected_ids = [
            spec.rule_id
            for spec in specs
            if spec.rule_id in candidate_set and spec.rule_id not in disabled_set
        ]
    else:
        # Explicitly enabled rules bypass principle/level selection but keep registry order.
        enabled_set = set(enabled_rule_ids)
        selected_ids = [
            spec.rule_id
            for spec in specs
            if spec.rule_id in enabled_set and spec.rule_id not in disabled_set
        ]

    return [registry[rule_id].factory() for rule_id in selected_ids]


def list_rule_info(
    *,
    principles: list[str] | None = None,
    target_level: str = DEFAULT_TARGET_LEVEL,
) -> list[RuleInfo]:
    """Return metadata for all known rules."""
    specs = _ordered_rule_specs()
    default_enabled = set(
        _candidate_rule_ids(
            specs=specs,
            principles=resolve_principles(principles),
            target_level=_resolve_level(target_level),
        )
    )
    return [
        RuleInfo(
            rule_id=spec.rule_id,
            name=spec.name,
            description=spec.description,
            principle=spec.principle,
            guideline_ref=spec.guideline_ref,
            level=spec.level,
            default_enabled=spec.rule_id in default_enabled,
        )
        for spec in specs
    ]


def resolve_principles(principles: list[str] | None) -> set[str]:
    """Validate a principle selection; ``None`` selects all four."""
    if principles is None:
        return set(PRINCIPLES)
    unknown = [item for item in principles if item not in PRINCIPLES]
    if unknown:
        joined = ", ".join(sorted(set(unknown)))
        raise ValueError(f"Unknown principles: {joined}")
    return set(principles)


def _candidate_rule_ids(
    *,
    specs: list[_RuleSpec],
    principles: set[str],
    target_level: int,
) -> list[str]:
    return [
        spec.rule_id
        for spec in specs
        if spec.principle in principles and LEVELS.index(spec.level) <= target_level
    ]


def _resolve_level(level: str) -> int:
    normalized = level.upper()
    if normalized not in LEVELS:
        choices = ", ".join(LEVELS)
        raise ValueError(f"Unknown conformance level '{level}'. Expected one of: {choices}")
    return LEVELS.index(normalized)


def _ordered_rule_specs() -> list[_RuleSpec]:
    return [_spec(rule_cls) for rule_cls in _RULE_CLASSES]


def _spec(rule_cls: type[Rule]) -> _RuleSpec:
    return _RuleSpec(
        rule_id=rule_cls.rule_id,
        factory=rule_cls,
        name=rule_cls.name,
        description=(rule_cls.__doc__ or "").strip(),
        principle=rule_cls.principle,
        guideline_ref=rule_cls.guideline_ref,
        level=rule_cls.level,
    )
