"""CLI entrypoint for nest-guidelines."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Annotated, Any

import click
import typer

from nest_guidelines import __version__
from nest_guidelines.config import (
    CONFIG_FILENAMES,
    AppConfig,
    default_config_template,
    load_app_config,
)
from nest_guidelines.output import (
    detect_hyperlink_support,
    location_renderer,
    render_human,
    render_json,
)
from nest_guidelines.rules import build_rules, list_rule_info
from nest_guidelines.rules.base import Rule
from nest_guidelines.rules.controller_return_type import HTTP_DECORATORS
from nest_guidelines.selection import FilePolicy, FileSelection, select_files
from nest_guidelines.validation import ValidationReport, validate_files

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
OUTPUT_FORMATS = ("human", "json")

app = typer.Typer(
    name="nest-guidelines",
    no_args_is_help=True,
    context_settings=CONTEXT_SETTINGS,
    help="Check NestJS TypeScript sources against fixed coding guidelines.",
)

check_app = typer.Typer(
    name="guidelines",
    add_completion=False,
    context_settings=CONTEXT_SETTINGS,
    help="Check NestJS TypeScript sources against fixed coding guidelines.",
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


def check_command(
    files: Annotated[
        list[str] | None,
        typer.Argument(help="Files to check. Defaults to changed files.", show_default=False),
    ] = None,
    check_all: Annotated[
        bool, typer.Option("--all", "-a", help="Check every TypeScript file in the project.")
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show every finding with its location.")
    ] = False,
    branch: Annotated[
        str | None,
        typer.Option("--branch", "-b", help="Check changes against a base branch."),
    ] = None,
    repo: Annotated[Path, typer.Option(help="Project root path.")] = Path("."),
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    workers: Annotated[
        int | None, typer.Option(min=1, help="Number of files validated in parallel.")
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Check files against the coding guidelines."""
    app_config, rules = _resolve_settings(repo, config_file)
    output_format = _output_format(format, app_config.format)
    _require_project_marker(repo, app_config)

    try:
        selection = select_files(
            repo,
            files=files,
            check_all=check_all,
            base_branch=branch or app_config.base_branch,
            policy=FilePolicy.from_config(app_config),
        )
        for warning in selection.warnings:
            typer.echo(click.style(f"Warning: {warning}", fg="yellow"), err=True)

        if not selection.files:
            _echo_empty_selection(selection, output_format)
            return

        if verbose and output_format == "human":
            _echo_verbose_header(selection)

        report = validate_files(
            selection.files,
            rules,
            workers=workers if workers is not None else app_config.workers,
        )
        if output_format == "json":
            typer.echo(render_json(report))
        else:
            typer.echo(render_human(report, verbose=verbose, locations=location_renderer()))
    except Exception as exc:
        typer.echo(click.style(f"Unexpected error: {exc}", fg="red"), err=True)
        raise typer.Exit(code=1) from exc

    if not report.success:
        raise typer.Exit(code=1)


app.command("check")(check_command)
check_app.command()(check_command)


@app.command("rules")
def rules_command(
    repo: Annotated[Path, typer.Option(help="Project root path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List the guideline rules with the settings they run with."""
    app_config, active_rules = _resolve_settings(repo, config_file)
    output_format = _output_format(format)
    active_ids = {rule.rule_id for rule in active_rules}
    settings = rule_settings(app_config)
    entries = [
        {
            "rule_id": item.rule_id,
            "name": item.name,
            "description": item.description,
            "enabled": item.rule_id in active_ids,
            "settings": settings[item.rule_id],
        }
        for item in list_rule_info()
    ]

    if output_format == "json":
        payload = {"rules": entries, "meta": {"config_source": app_config.source}}
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [f"Guideline rules (config: {app_config.source or 'defaults'}):"]
    for entry in entries:
        if entry["enabled"]:
            status = click.style("enabled", fg="green")
        else:
            status = click.style("disabled", fg="yellow")
        lines.append("")
        lines.append(f"{entry['rule_id']} [{status}]")
        lines.append(f"  {entry['description']}")
        for key, value in entry["settings"].items():
            shown = ", ".join(value) if isinstance(value, list) else value
            lines.append(f"  {key}: {shown}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    repo: Annotated[Path, typer.Option(help="Project root path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    app_config, active_rules = _resolve_settings(repo, config_file)
    output_format = _output_format(format)
    payload = app_config.to_dict()
    payload["active_rule_ids"] = [rule.rule_id for rule in active_rules]

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- extension: {payload['extension']}",
        f"- search_dirs: {payload['search_dirs']}",
        f"- exclude_dirs: {payload['exclude_dirs']}",
        f"- test_suffixes: {payload['test_suffixes']}",
        f"- base_branch: {payload['base_branch']}",
        f"- project_marker: {payload['project_marker']}",
        f"- workers: {payload['workers']}",
        f"- naming.exemptions: {payload['naming']['exemptions']}",
        f"- controller.suffix: {payload['controller']['suffix']}",
        f"- active_rule_ids: {payload['active_rule_ids']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    repo: Annotated[Path, typer.Option(help="NestJS project root to write into.")] = Path("."),
    out: Annotated[
        Path | None,
        typer.Option(help="Config path, relative to the project root.", show_default=False),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Write even if the project already has a config file."),
    ] = False,
) -> None:
    """Write a starter .nest-guidelines.toml into a NestJS project."""
    target = repo / (out if out is not None else Path(CONFIG_FILENAMES[0]))
    existing = [repo / name for name in CONFIG_FILENAMES if (repo / name).exists()]
    if target.exists():
        existing.insert(0, target)
    if existing and not force:
        raise typer.BadParameter(
            f"{existing[0]} already configures this project. Use --force to write anyway.",
            param_hint="--out",
        )

    if not (repo / AppConfig().project_marker).exists():
        typer.echo(
            click.style(
                f"Warning: {repo.resolve()} has no package.json; "
                "the check command runs from the NestJS project root.",
                fg="yellow",
            ),
            err=True,
        )

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {target.resolve()}")


def main() -> None:
    """Console script entrypoint for the command group."""
    app()


def run_check() -> None:
    """Console script entrypoint for the single ``guidelines`` command."""
    check_app()


def rule_settings(app_config: AppConfig) -> dict[str, dict[str, Any]]:
    """Return the configured knobs each built-in rule runs with, keyed by rule id."""
    return {
        "file-naming": {
            "extension": app_config.extension,
            "exemptions": list(app_config.naming_exemptions),
        },
        "interface-naming": {"prefix": "I"},
        "controller-return-type": {
            "suffix": app_config.controller_suffix,
            "http_decorators": sorted(HTTP_DECORATORS),
        },
    }


def _resolve_settings(repo: Path, config_file: Path | None) -> tuple[AppConfig, list[Rule]]:
    """Load the project config and build its rule list, as usage errors on failure."""
    try:
        app_config = load_app_config(repo, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc

    try:
        rules = build_rules(app_config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="[rules]") from exc
    return app_config, rules


def _output_format(value: str | None, default: str = "human") -> str:
    output_format = (value or default).lower()
    if output_format not in OUTPUT_FORMATS:
        raise typer.BadParameter(
            f"format must be one of: {', '.join(OUTPUT_FORMATS)}", param_hint="--format"
        )
    return output_format


def _require_project_marker(repo: Path, app_config: AppConfig) -> None:
    marker = app_config.project_marker
    if marker and not (repo / marker).exists():
        typer.echo(
            click.style(
                f"{marker} not found in {repo.resolve()}. "
                "Run this command from the root of your NestJS project.",
                fg="red",
            ),
            err=True,
        )
        raise typer.Exit(code=1)


def _echo_empty_selection(selection: FileSelection, output_format: str) -> None:
    if output_format == "json":
        typer.echo(render_json(ValidationReport()))
    elif selection.mode in {"changed", "branch"}:
        typer.echo(click.style("No changed files to check.", fg="green"))
    else:
        typer.echo(click.style("No files to check.", fg="green"))


def _echo_verbose_header(selection: FileSelection) -> None:
    terminal = os.environ.get("TERM_PROGRAM") or os.environ.get("TERM") or "unknown terminal"
    support = "yes" if detect_hyperlink_support() else "no"
    typer.echo(f"Hyperlink support: {support} ({terminal})")
    typer.echo(f"Checking {len(selection.files)} file(s) [{selection.mode}]:")
    for path in selection.files:
        typer.echo(f"  {path}")
