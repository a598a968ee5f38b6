"""Output rendering."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

import click

from nest_guidelines import __version__
from nest_guidelines.rules.base import ERROR, Finding
from nest_guidelines.validation import FileReport, ValidationReport

PREVIEW_LIMIT = 3

HYPERLINK_TERM_PROGRAMS = frozenset({"vscode", "iTerm.app", "Hyper", "WezTerm", "Alacritty"})


class LocationRenderer(Protocol):
    """Renders the source locator of a finding."""

    def render(self, finding: Finding) -> str:
        """Return the locator text for ``finding``."""


class PlainLocationRenderer:
    """Renders ``path:line:column`` as plain text."""

    def render(self, finding: Finding) -> str:
        return format_location(finding)


class HyperlinkLocationRenderer:
    """Renders the locator as an OSC 8 ``file://`` hyperlink."""

    def render(self, finding: Finding) -> str:
        text = format_location(finding)
        url = f"file://{Path(finding.path).resolve()}"
        if finding.line:
            url += f":{finding.line}"
        label = click.style(text, fg="blue", underline=True)
        return f"\x1b]8;;{url}\x1b\\{label}\x1b]8;;\x1b\\"


def format_location(finding: Finding) -> str:
    if not finding.line:
        return finding.path
    return f"{finding.path}:{finding.line}:{finding.column or 0}"


def detect_hyperlink_support(environ: Mapping[str, str] | None = None) -> bool:
    """Guess whether the terminal renders OSC 8 hyperlinks from environment signals."""
    env = os.environ if environ is None else environ
    term_program = env.get("TERM_PROGRAM", "")
    term = env.get("TERM", "")
    return (
        term_program in HYPERLINK_TERM_PROGRAMS
        or "iTerm" in term_program
        or bool(env.get("WT_SESSION"))
        or env.get("TERMINAL_EMULATOR", "") == "JetBrains-JediTerm"
        or "xterm" in term
        or "screen" in term
        or env.get("COLORTERM", "") == "truecolor"
    )


def location_renderer(environ: Mapping[str, str] | None = None) -> LocationRenderer:
    """Pick the locator renderer for the current terminal."""
    if detect_hyperlink_support(environ):
        return HyperlinkLocationRenderer()
    return PlainLocationRenderer()


def render_human(
    report: ValidationReport,
    *,
    verbose: bool = False,
    locations: LocationRenderer | None = None,
) -> str:
    """Render a grouped, colorized validation report."""
    if not report.findings:
        return click.style("All coding guidelines passed.", fg="green", bold=True)

    renderer = locations or PlainLocationRenderer()
    lines: list[str] = [click.style("Validation results:", bold=True)]
    for file_report in report.files_with_findings():
        lines.append("")
        lines.extend(_render_file(file_report, verbose=verbose, renderer=renderer))

    lines.append("")
    lines.append(click.style("Summary:", bold=True))
    lines.append(f"  total errors: {report.error_count}")
    lines.append(f"  total warnings: {report.warning_count}")
    if not verbose:
        lines.append("")
        lines.append("Run with --verbose for details.")
    return "\n".join(lines)


def render_json(report: ValidationReport) -> str:
    """Render stable JSON output for CI and automation."""
    return json.dumps(build_json_payload(report), sort_keys=True)


def build_json_payload(report: ValidationReport) -> dict[str, Any]:
    """Build stable JSON payload for CI and automation."""
    return {
        "success": report.success,
        "error_count": report.error_count,
        "warning_count": report.warning_count,
        "files": [
            {
                "path": file_report.path,
                "findings": [_serialize_finding(item) for item in file_report.findings],
            }
            for file_report in report.files
        ],
        "meta": {"version": __version__},
    }


def _render_file(
    file_report: FileReport,
    *,
    verbose: bool,
    renderer: LocationRenderer,
) -> list[str]:
    lines = [click.style(file_report.path, bold=True)]
    if file_report.error_count:
        lines.append(click.style(f"  errors: {file_report.error_count}", fg="red"))
    if file_report.warning_count:
        lines.append(click.style(f"  warnings: {file_report.warning_count}", fg="yellow"))

    if verbose:
        for finding in file_report.findings:
            lines.append(f"    {_severity_label(finding)} {finding.rule_id}: {finding.message}")
            lines.append(f"      at {renderer.render(finding)}")
        return lines

    for finding in file_report.findings[:PREVIEW_LIMIT]:
        locator = renderer.render(finding)
        lines.append(f"    {_severity_label(finding)} {finding.rule_id} -> {locator}")
    remaining = len(file_report.findings) - PREVIEW_LIMIT
    if remaining > 0:
        lines.append(f"    ... and {remaining} more")
    return lines


def _serialize_finding(finding: Finding) -> dict[str, Any]:
    return {
        "rule_id": finding.rule_id,
        "path": finding.path,
        "message": finding.message,
        "severity": finding.severity,
        "line": finding.line,
        "column": finding.column,
    }


def _severity_label(finding: Finding) -> str:
    if finding.severity == ERROR:
        return click.style("[error]", fg="red")
    return click.style("[warning]", fg="yellow")
