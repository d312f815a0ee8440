"""CLI entrypoint for a11y-scan."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from a11y_scan import __version__
from a11y_scan.config import (
    FORMATS,
    SORT_CHOICES,
    AppConfig,
    default_config_template,
    load_app_config,
)
from a11y_scan.browser import BrowserError, open_browser_document
from a11y_scan.dom import HtmlDocument
from a11y_scan.inspector import Inspector
from a11y_scan.output import render_human, render_json, severity_at_least, sort_violations
from a11y_scan.rules import build_rules, list_rule_info
from a11y_scan.rules.base import SEVERITIES, Rule
from a11y_scan.scanner import ScanResult, Scanner

app = typer.Typer(
    name="a11y-scan",
    no_args_is_help=True,
    help="Audit HTML documents against accessibility guidelines.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version


@app.command("scan")
def scan_command(
    path: Annotated[Path | None, typer.Argument(help="HTML file to scan.")] = None,
    stdin: Annotated[bool, typer.Option(help="Read HTML from stdin.")] = False,
    url: Annotated[
        str | None,
        typer.Option(help="Report source URL. With --browser and no input, the page to load."),
    ] = None,
    root: Annotated[Path, typer.Option(help="Project path used for config lookup.")] = Path("."),
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    sort: Annotated[
        str | None,
        typer.Option(help="Violation order: default|severity|principle.", show_default="default"),
    ] = None,
    fail_on: Annotated[
        str | None,
        typer.Option(help="Exit nonzero when a violation is at least this severe."),
    ] = None,
    out: Annotated[Path | None, typer.Option(help="Write the report to this file.")] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
    browser: Annotated[
        bool,
        typer.Option("--browser", help="Render in headless Chromium instead of statically."),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log to stderr.")] = False,
) -> None:
    """Scan an HTML document and report accessibility violations."""
    _configure_logging(verbose)
    app_config = _load_config_or_raise(root, config_file)
    output_format = _choice_or_default(
        value=format, default=app_config.format, allowed=FORMATS, field_name="--format"
    )
    order = _choice_or_default(
        value=sort, default=app_config.sort, allowed=SORT_CHOICES, field_name="--sort"
    )
    fail_threshold: str | None = None
    if fail_on is not None or app_config.fail_on is not None:
        fail_threshold = _choice_or_default(
            value=fail_on,
            default=app_config.fail_on or "",
            allowed=set(SEVERITIES),
            field_name="--fail-on",
        )

    scanner = Scanner(_build_configured_rules_or_raise(app_config))
    viewport = app_config.viewport.as_tuple()
    if browser:
        result = _scan_in_browser(scanner, path=path, stdin=stdin, url=url, viewport=viewport)
    else:
        document, source_url = _load_document(path=path, stdin=stdin, url=url, viewport=viewport)
        result = scanner.scan(document, source_url=source_url)
    ordered = ScanResult(
        source_url=result.source_url,
        timestamp=result.timestamp,
        violations=tuple(sort_violations(result.violations, order)),
        summary=result.summary,
        rule_runs=result.rule_runs,
    )

    rendered = render_json(ordered) if output_format == "json" else render_human(ordered)
    if out is not None:
        out_path = out.resolve()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(rendered + "\n", encoding="utf-8")
        typer.echo(f"Wrote report: {out_path}")
    else:
        typer.echo(rendered)

    if fail_threshold is not None and severity_at_least(result.violations, fail_threshold):
        raise typer.Exit(code=1)


@app.command("inspect")
def inspect_command(
    path: Annotated[Path, typer.Argument(help="HTML file to scan.")],
    locator: Annotated[str, typer.Argument(help="Locator from a scan report.")],
    root: Annotated[Path, typer.Option(help="Project path used for config lookup.")] = Path("."),
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Scan a document and show the element behind a locator."""
    app_config = _load_config_or_raise(root, config_file)
    document, source_url = _load_document(
        path=path, stdin=False, url=None, viewport=app_config.viewport.as_tuple()
    )
    Scanner(_build_configured_rules_or_raise(app_config)).scan(document, source_url=source_url)
    highlight = Inspector(document).highlight(locator)
    if highlight is not None:
        typer.echo(highlight.describe())


@app.command("rules")
def rules_command(
    root: Annotated[Path, typer.Option(help="Project path used for config lookup.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List available rules."""
    output_format = format.lower()
    if output_format not in FORMATS:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    active_rules = _build_configured_rules_or_raise(app_config)
    active_ids = {rule.rule_id for rule in active_rules}
    rule_info = list_rule_info(target_level=app_config.target_level)

    if output_format == "json":
        payload = {
            "rules": [
                {
                    "rule_id": item.rule_id,
                    "name": item.name,
                    "description": item.description,
                    "principle": item.principle,
                    "guideline_ref": item.guideline_ref,
                    "level": item.level,
                    "default_enabled": item.default_enabled,
                    "enabled": item.rule_id in active_ids,
                }
                for item in rule_info
            ],
            "meta": {"config_source": app_config.source},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Available rules:"]
    for item in rule_info:
        status = "enabled" if item.rule_id in active_ids else "disabled"
        lines.append(
            f"- {item.rule_id} [{status}] {item.guideline_ref} ({item.level}, "
            f"{item.principle}) - {item.name}"
        )
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    root: Annotated[Path, typer.Option(help="Project path used for config lookup.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in FORMATS:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    active_rules = _build_configured_rules_or_raise(app_config)
    payload = app_config.to_dict()
    payload["active_rule_ids"] = [rule.rule_id for rule in active_rules]

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- fail_on: {payload['fail_on']}",
        f"- sort: {payload['sort']}",
        f"- target_level: {payload['target_level']}",
        f"- rules.enable: {payload['rules']['enable']}",
        f"- rules.disable: {payload['rules']['disable']}",
        f"- principles.enable: {payload['principles']['enable']}",
        f"- principles.disable: {payload['principles']['disable']}",
        f"- viewport: {payload['viewport']['width']}x{payload['viewport']['height']}",
        f"- active_rule_ids: {payload['active_rule_ids']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".a11y-scan.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter project config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


@app.command("config-validate")
def config_validate_command(
    root: Annotated[Path, typer.Option(help="Project path used for config lookup.")] = Path("."),
    config_file: Annotated[
        Path,
        typer.Option("--config", help="Path to config TOML file to validate."),
    ] = Path(".a11y-scan.toml"),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """Validate a config file and report active rules."""
    output_format = format.lower()
    if output_format not in FORMATS:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    active_rules = _build_configured_rules_or_raise(app_config)
    payload = {
        "ok": True,
        "source": app_config.source,
        "active_rule_ids": [rule.rule_id for rule in active_rules],
    }
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return
    typer.echo(
        "\n".join(
            [
                "Config is valid.",
                f"- source: {payload['source']}",
                f"- active_rule_ids: {payload['active_rule_ids']}",
            ]
        )
    )


def main() -> None:
    """Console script entrypoint."""
    app()


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _load_document(
    *,
    path: Path | None,
    stdin: bool,
    url: str | None,
    viewport: tuple[int, int],
) -> tuple[HtmlDocument, str]:
    if path is not None and stdin:
        raise typer.BadParameter("Use either PATH or --stdin, not both.")
    if path is None and not stdin:
        raise typer.BadParameter("Provide an HTML file PATH or --stdin.")

    markup: str | bytes
    if path is not None:
        try:
            markup = path.read_bytes()
        except OSError as exc:
            raise typer.BadParameter(f"Cannot read {path}: {exc}", param_hint="PATH") from exc
        source_url = url or path.resolve().as_uri()
    else:
        markup = sys.stdin.read()
        source_url = url or "stdin"

    return HtmlDocument(markup, viewport=viewport), source_url


def _scan_in_browser(
    scanner: Scanner,
    *,
    path: Path | None,
    stdin: bool,
    url: str | None,
    viewport: tuple[int, int],
) -> ScanResult:
    if path is not None and stdin:
        raise typer.BadParameter("Use either PATH or --stdin, not both.")

    target: str | None = None
    markup: str | None = None
    if path is not None:
        if not path.is_file():
            raise typer.BadParameter(f"Cannot read {path}: not a file", param_hint="PATH")
        target = path.resolve().as_uri()
        source_url = url or target
    elif stdin:
        markup = sys.stdin.read()
        source_url = url or "stdin"
    elif url is not None:
        target = url
        source_url = url
    else:
        raise typer.BadParameter("Provide an HTML file PATH, --stdin or --url.")

    try:
        with open_browser_document(url=target, markup=markup, viewport=viewport) as document:
            return scanner.scan(document, source_url=source_url)
    except BrowserError as exc:
        raise typer.BadParameter(str(exc), param_hint="--browser") from exc


def _load_config_or_raise(root: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(root, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _build_configured_rules_or_raise(app_config: AppConfig) -> list[Rule]:
    try:
        return build_rules(
            enabled_rule_ids=app_config.rule_enable,
            disabled_rule_ids=app_config.rule_disable,
            principles=app_config.active_principles(),
            target_level=app_config.target_level,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.rules") from exc


def _choice_or_default(
    *,
    value: str | None,
    default: str,
    allowed: set[str],
    field_name: str,
) -> str:
    resolved = (value or default).lower()
    if resolved not in allowed:
        choices = ", ".join(sorted(allowed))
        raise typer.BadParameter(f"{field_name} must be one of: {choices}", param_hint=field_name)
    return resolved
