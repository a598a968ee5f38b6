"""Interface naming convention rule."""

from __future__ import annotations

import logging
import re
from pathlib import PurePath

from tree_sitter import Node

from nest_guidelines.rules.base import ERROR, Finding, location_of, read_source
from nest_guidelines.syntax import ParseError, node_text, parse, walk

logger = logging.getLogger(__name__)

VALID_NAME_RE = re.compile(r"^I[A-Z]")
INTERFACE_RE = re.compile(r"interface\s+([A-Za-z_$][A-Za-z0-9_$]*)")


class InterfaceNamingRule:
    """Interfaces must start with the letter "I" (e.g. IUser)."""

    rule_id = "interface-naming"
    description = 'Interfaces must start with the letter "I" (e.g. IUser).'

    def validate(self, path: str) -> list[Finding]:
        content = read_source(path)
        try:
            tree = parse(content, PurePath(path).suffix)
        except ParseError as exc:
            logger.debug("Falling back to regex for %s: %s", path, exc.reason)
            return self._validate_text(path, content)
        return self._validate_tree(path, tree.root_node)

    def _validate_tree(self, path: str, root: Node) -> list[Finding]:
        findings: list[Finding] = []

        def _visit(node: Node) -> None:
            if node.type != "interface_declaration":
                return
            name = node_text(node.child_by_field_name("name"))
            row, column = node.start_point
            findings.extend(self._check_name(path, name, row + 1, column))

        walk(root, _visit)
        return findings

    def _validate_text(self, path: str, content: str) -> list[Finding]:
        findings: list[Finding] = []
        for match in INTERFACE_RE.finditer(content):
            line, column = location_of(content, match.start())
            findings.extend(self._check_name(path, match.group(1), line, column))
        return findings

    def _check_name(self, path: str, name: str, line: int, column: int) -> list[Finding]:
        findings: list[Finding] = []
        if len(name) < 2 or not VALID_NAME_RE.match(name):
            findings.append(
                Finding(
                    rule_id=self.rule_id,
                    path=path,
                    message=(
                        f"Interface '{name}' must start with the letter \"I\" followed by "
                        "an uppercase letter (e.g. IUser, IUserService)."
                    ),
                    severity=ERROR,
                    line=line,
                    column=column,
                )
            )

        if name == "I" or len(name) <= 2:
            findings.append(
                Finding(
                    rule_id=self.rule_id,
                    path=path,
                    message=(
                        f"Interface name '{name}' is too short. Use a descriptive name "
                        "such as IUser or IUserService."
                    ),
                    severity=ERROR,
                    line=line,
                    column=column,
                )
            )
        return findings
