"""Validation orchestration."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from nest_guidelines.rules import default_rules
from nest_guidelines.rules.base import ERROR, WARNING, Finding, Rule

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FileReport:
    """Findings for a single file, in rule-registration order."""

    path: str
    findings: list[Finding] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for finding in self.findings if finding.severity == ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for finding in self.findings if finding.severity == WARNING)


@dataclass(slots=True)
class ValidationReport:
    """Top-level validation output."""

    files: list[FileReport] = field(default_factory=list)
    errors: list[Finding] = field(default_factory=list)
    warnings: list[Finding] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def success(self) -> bool:
        return self.error_count == 0

    @property
    def findings(self) -> list[Finding]:
        return [finding for file_report in self.files for finding in file_report.findings]

    def files_with_findings(self) -> list[FileReport]:
        return [file_report for file_report in self.files if file_report.findings]


def validate_files(
    files: list[str],
    rules: list[Rule] | None = None,
    *,
    workers: int = 1,
) -> ValidationReport:
    """Run every rule against every file.

    Files are processed independently; with ``workers > 1`` they run on a thread
    pool, but each file collects its own findings and the results are merged in
    file order, so the report does not depend on scheduling.
    """
    active_rules = rules if rules is not None else default_rules()
    if workers > 1 and len(files) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            per_file = list(executor.map(lambda path: validate_file(path, active_rules), files))
    else:
        per_file = [validate_file(path, active_rules) for path in files]

    report = ValidationReport()
    for path, findings in zip(files, per_file, strict=True):
        report.files.append(FileReport(path=path, findings=findings))
        for finding in findings:
            if finding.severity == ERROR:
                report.errors.append(finding)
            else:
                report.warnings.append(finding)
    return report


def validate_file(path: str, rules: list[Rule]) -> list[Finding]:
    """Run each rule on one file, turning rule faults into warnings."""
    findings: list[Finding] = []
    for rule in rules:
        logger.debug("Applying %s to %s", rule.rule_id, path)
        try:
            findings.extend(rule.validate(path))
        except Exception as exc:
            logger.debug("Rule %s failed on %s", rule.rule_id, path, exc_info=True)
            findings.append(
                Finding(
                    rule_id=rule.rule_id,
                    path=path,
                    message=f"Error applying rule '{rule.rule_id}' to {path}: {exc}",
                    severity=WARNING,
                )
            )
    return findings
