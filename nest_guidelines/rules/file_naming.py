"""File naming convention rule."""

from __future__ import annotations

import re
from pathlib import PurePath

from nest_guidelines.config import DEFAULT_EXTENSION, DEFAULT_NAMING_EXEMPTIONS
from nest_guidelines.rules.base import ERROR, WARNING, Finding

_SEPARATOR_RE = re.compile(r"[-_]")


class FileNamingRule:
    """File names must start with an uppercase letter (e.g. Test.ts)."""

    rule_id = "file-naming"
    description = "File names must start with an uppercase letter (e.g. Test.ts)."

    def __init__(
        self,
        *,
        extension: str = DEFAULT_EXTENSION,
        exemptions: tuple[str, ...] | list[str] = DEFAULT_NAMING_EXEMPTIONS,
    ) -> None:
        self.extension = extension
        self.exemptions = frozenset(item.lower() for item in exemptions)
        self._allowed_re = re.compile(rf"^[A-Za-z0-9.-]+{re.escape(extension)}$")

    def validate(self, path: str) -> list[Finding]:
        file_name = PurePath(path).name
        if file_name.lower() in self.exemptions:
            return []

        base_name = file_name
        if self.extension and base_name.endswith(self.extension):
            base_name = base_name[: -len(self.extension)]

        findings: list[Finding] = []
        if not base_name[:1].isupper():
            findings.append(
                Finding(
                    rule_id=self.rule_id,
                    path=path,
                    message=(
                        f"File name '{file_name}' must start with an uppercase letter. "
                        f"Expected format: 'FileName{self.extension}'."
                    ),
                    severity=ERROR,
                )
            )

        if not self._allowed_re.match(file_name):
            findings.append(
                Finding(
                    rule_id=self.rule_id,
                    path=path,
                    message=(
                        f"File name '{file_name}' contains disallowed characters. "
                        "Only letters, digits, hyphens and dots are allowed."
                    ),
                    severity=ERROR,
                )
            )

        if "-" in base_name or "_" in base_name:
            suggested = to_pascal_case(base_name)
            findings.append(
                Finding(
                    rule_id=self.rule_id,
                    path=path,
                    message=(
                        f"File name '{file_name}' should use PascalCase instead of "
                        f"kebab-case or snake_case. Suggested name: "
                        f"'{suggested}{self.extension}'."
                    ),
                    severity=WARNING,
                )
            )

        return findings


def to_pascal_case(name: str) -> str:
    """Convert ``user-profile`` / ``user_profile`` to ``UserProfile``."""
    return "".join(part[:1].upper() + part[1:].lower() for part in _SEPARATOR_RE.split(name))
