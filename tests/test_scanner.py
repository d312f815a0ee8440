"""Runner orchestration tests."""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any

import pytest

from a11y_scan.dom import DocumentAccessor, HtmlDocument
from a11y_scan.rules.base import Level, Principle, Violation
from a11y_scan.rules.image_alt_text import ImageAltTextRule
from a11y_scan.rules.valid_html import ValidHtmlRule
from a11y_scan.scanner import Scanner, scan_document, scan_file, scan_html, summarize

PAGE = """
<html><head><title>Demo</title></head><body>
<img src="hero.png">
<div id="dup">a</div><div id="dup">b</div>
<h1>Welcome</h1><h3>Skipped</h3>
</body></html>
"""


class ExplodingRule:
    """Always fails."""

    rule_id = "exploding"
    name = "Exploding rule"
    principle: Principle = "robust"
    guideline_ref = "4.1.2"
    level: Level = "A"

    def evaluate(self, document: DocumentAccessor) -> list[Violation]:
        raise RuntimeError("boom")


def test_failing_rule_is_isolated_and_recorded(caplog: pytest.LogCaptureFixture) -> None:
    document = HtmlDocument(PAGE)
    scanner = Scanner([ImageAltTextRule(), ExplodingRule(), ValidHtmlRule()])

    with caplog.at_level(logging.WARNING, logger="a11y_scan.scanner"):
        result = scanner.scan(document, source_url="https://example.test/")

    assert [item.rule_id for item in result.violations] == ["image-alt-text", "valid-html"]
    assert result.failed_rules == ["exploding"]
    failed = result.rule_runs[1]
    assert failed.status == "failed"
    assert failed.reason == "RuntimeError: boom"
    assert [run.status for run in result.rule_runs] == ["ran", "failed", "ran"]
    assert "exploding" in caplog.text


def test_summary_counts_by_severity_and_principle() -> None:
    result = scan_html(PAGE, source_url="https://example.test/")
    summary = result.summary
    assert summary.total == len(result.violations)
    assert summary.critical == 1
    assert summary.serious == 1
    assert summary.moderate == 1
    assert summary.minor == 0
    assert summary.by_principle == {
        "perceivable": 2,
        "operable": 0,
        "understandable": 0,
        "robust": 1,
    }


def test_violations_follow_rule_order() -> None:
    result = scan_html(PAGE)
    assert [item.rule_id for item in result.violations] == [
        "image-alt-text",
        "heading-structure",
        "valid-html",
    ]


def test_locators_are_unique_within_a_scan_and_reset_between_scans() -> None:
    document = HtmlDocument(PAGE)
    first = scan_document(document, source_url="x")
    locators = [item.locator for item in first.violations]
    assert len(set(locators)) == len(locators)

    second = scan_document(document, source_url="x")
    assert [item.locator for item in second.violations] == locators
    assert len(document.locators) == len(locators)


def test_locators_resolve_to_flagged_nodes() -> None:
    document = HtmlDocument(PAGE)
    result = scan_document(document, [ImageAltTextRule()])
    (violation,) = result.violations
    node = document.resolve(violation.locator)
    assert node is not None and node.name == "img"


def test_scan_result_metadata(tmp_path: Path) -> None:
    page = tmp_path / "page.html"
    page.write_text(PAGE, encoding="utf-8")
    result = scan_file(page)
    assert result.source_url == page.resolve().as_uri()
    assert result.timestamp > 1_600_000_000_000
    assert len(result.rule_runs) == 12


def test_summarize_empty() -> None:
    summary = summarize([])
    assert summary.total == 0
    assert summary.to_dict()["byPrinciple"] == {
        "perceivable": 0,
        "operable": 0,
        "understandable": 0,
        "robust": 0,
    }


def test_malformed_inline_style_does_not_abort_the_scan() -> None:
    result = scan_html('<img src="a.png"><div style="height: .">x</div>')
    assert [item.rule_id for item in result.violations] == ["image-alt-text"]
    assert result.failed_rules == []


def test_empty_markup_scans_clean() -> None:
    result = scan_html("")
    assert result.summary.total == 0
    assert result.failed_rules == []


def test_summary_by_principle_is_read_only() -> None:
    summary = summarize([])
    assert isinstance(summary.by_principle, MappingProxyType)
    writable: Any = summary.by_principle
    with pytest.raises(TypeError):
        writable["robust"] = 5
    assert summary.by_principle["robust"] == 0


def test_scan_file_reads_non_utf8_bytes(tmp_path: Path) -> None:
    page = tmp_path / "latin.html"
    markup = '<html><head><meta charset="iso-8859-1"></head><body><img src="café.png"></body></html>'
    page.write_bytes(markup.encode("latin-1"))
    result = scan_file(page)
    (violation,) = result.violations
    assert "café.png" in violation.snippet
