"""Rule registry selection tests."""

from __future__ import annotations

from typing import Any

import pytest

from a11y_scan.rules import build_rules, default_rules, list_rule_info

EXPECTED_ORDER = [
    "image-alt-text",
    "color-contrast",
    "heading-structure",
    "keyboard-accessible",
    "focus-order",
    "link-purpose",
    "bypass-blocks",
    "form-labels",
    "fieldset-legend",
    "required-fields",
    "valid-html",
    "aria-usage",
]


def test_default_rules_follow_registry_order() -> None:
    assert [rule.rule_id for rule in default_rules()] == EXPECTED_ORDER


def test_each_build_returns_fresh_instances() -> None:
    first = default_rules()
    second = default_rules()
    assert all(a is not b for a, b in zip(first, second, strict=True))


def test_target_level_a_drops_aa_rules() -> None:
    ids = [rule.rule_id for rule in build_rules(target_level="a")]
    assert "color-contrast" not in ids
    assert len(ids) == len(EXPECTED_ORDER) - 1


def test_principle_selection() -> None:
    ids = [rule.rule_id for rule in build_rules(principles=["robust"])]
    assert ids == ["valid-html", "aria-usage"]


def test_enable_and_disable_keep_registry_order() -> None:
    rules = build_rules(
        enabled_rule_ids=["aria-usage", "image-alt-text", "form-labels"],
        disabled_rule_ids=["form-labels"],
    )
    assert [rule.rule_id for rule in rules] == ["image-alt-text", "aria-usage"]


def test_explicit_enable_bypasses_level_filter() -> None:
    rules = build_rules(enabled_rule_ids=["color-contrast"], target_level="A")
    assert [rule.rule_id for rule in rules] == ["color-contrast"]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"enabled_rule_ids": ["no-such-rule"]},
        {"disabled_rule_ids": ["nope"]},
        {"principles": ["tasty"]},
        {"target_level": "AAAA"},
    ],
)
def test_unknown_selection_raises_value_error(kwargs: dict[str, Any]) -> None:
    with pytest.raises(ValueError):
        build_rules(**kwargs)


def test_list_rule_info_metadata() -> None:
    info = {item.rule_id: item for item in list_rule_info(target_level="A")}
    assert list(info) == EXPECTED_ORDER
    contrast = info["color-contrast"]
    assert contrast.principle == "perceivable"
    assert contrast.guideline_ref == "1.4.3"
    assert contrast.level == "AA"
    assert contrast.default_enabled is False
    assert info["aria-usage"].default_enabled is True
    assert info["image-alt-text"].description.startswith("All images must have alt")
