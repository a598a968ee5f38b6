"""Controller action return-type rule."""

from __future__ import annotations

import logging
import re
from pathlib import PurePath

from tree_sitter import Node

from nest_guidelines.config import DEFAULT_CONTROLLER_SUFFIX
from nest_guidelines.rules.base import ERROR, WARNING, Finding, location_of, read_source
from nest_guidelines.syntax import ParseError, node_text, parse, walk

logger = logging.getLogger(__name__)

CONTROLLER_DECORATOR = "Controller"
HTTP_DECORATORS = frozenset({"Get", "Post", "Put", "Delete", "Patch", "Options", "Head"})
PRIMITIVE_TYPES = frozenset({"string", "number", "boolean", "any", "unknown", "void"})
# Keywords reported by name; other built-in keywords resolve to "PredefinedType".
NAMED_KEYWORDS = frozenset({"string", "number", "boolean", "any"})
DTO_SUFFIXES = ("Dto", "Response", "Entity")
CLASS_NODE_TYPES = frozenset({"class_declaration", "abstract_class_declaration"})

_TYPE_NAME_RE = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_HTTP_METHOD_RE = re.compile(
    r"@(Get|Post|Put|Delete|Patch|Options|Head)\b[^\n]*?(?:\n\s*|\s+)"
    r"(async\s+)?([A-Za-z_$][A-Za-z0-9_$]*)\s*\("
)


class ControllerReturnTypeRule:
    """Controller actions must return DTO objects."""

    rule_id = "controller-return-type"
    description = "Controller actions must return DTO objects."

    def __init__(self, *, suffix: str = DEFAULT_CONTROLLER_SUFFIX) -> None:
        self.suffix = suffix.lower()

    def applies_to(self, path: str) -> bool:
        lowered = path.lower()
        return "controller" in lowered or bool(self.suffix and lowered.endswith(self.suffix))

    def validate(self, path: str) -> list[Finding]:
        if not self.applies_to(path):
            return []

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
            if node.type in CLASS_NODE_TYPES and _has_controller_decorator(node):
                for method, decorators in _class_methods(node):
                    if HTTP_DECORATORS.intersection(decorators):
                        findings.extend(self._check_method(path, method))

        walk(root, _visit)
        return findings

    def _check_method(self, path: str, method: Node) -> list[Finding]:
        name = node_text(method.child_by_field_name("name"))
        method_row, method_column = method.start_point
        annotation = method.child_by_field_name("return_type")
        if annotation is None:
            return [
                Finding(
                    rule_id=self.rule_id,
                    path=path,
                    message=(
                        f"Controller method '{name}' must declare a return type. "
                        "All controller actions must return DTO objects."
                    ),
                    severity=ERROR,
                    line=method_row + 1,
                    column=method_column,
                )
            ]

        type_node = annotation.named_children[0] if annotation.named_children else annotation
        return_type = resolve_type_name(type_node)
        findings: list[Finding] = []
        if not is_valid_return_type(return_type):
            type_row, type_column = type_node.start_point
            findings.append(
                Finding(
                    rule_id=self.rule_id,
                    path=path,
                    message=(
                        f"Controller method '{name}' returns '{return_type}', but a DTO "
                        "object is expected (e.g. UserDto, CreateUserResponseDto). "
                        "Primitive types and 'any' are not allowed."
                    ),
                    severity=ERROR,
                    line=type_row + 1,
                    column=type_column,
                )
            )

        if "Promise" in return_type and not _is_async(method):
            findings.append(
                Finding(
                    rule_id=self.rule_id,
                    path=path,
                    message=(
                        f"Controller method '{name}' returns a Promise but is not "
                        "declared async."
                    ),
                    severity=WARNING,
                    line=method_row + 1,
                    column=method_column,
                )
            )
        return findings

    def _validate_text(self, path: str, content: str) -> list[Finding]:
        findings: list[Finding] = []
        for match in _HTTP_METHOD_RE.finditer(content):
            start = match.start()
            brace = content.find("{", start)
            declaration = content[start:brace] if brace != -1 else content[start:]
            if ":" in declaration:
                continue
            line, _ = location_of(content, start)
            findings.append(
                Finding(
                    rule_id=self.rule_id,
                    path=path,
                    message=(
                        f"Controller method '{match.group(3)}' must declare a return type "
                        "(a DTO object)."
                    ),
                    severity=ERROR,
                    line=line,
                    column=0,
                )
            )
        return findings


def resolve_type_name(node: Node) -> str:
    """Resolve a return-type node to the name used by the DTO policy."""
    if node.type in {"type_identifier", "nested_type_identifier"}:
        return node_text(node)
    if node.type == "generic_type":
        return node_text(node.child_by_field_name("name"))
    if node.type == "predefined_type":
        keyword = node_text(node).lower()
        if keyword in NAMED_KEYWORDS:
            return keyword
    return "".join(part.capitalize() for part in node.type.split("_"))


def is_valid_return_type(return_type: str) -> bool:
    """Return whether a resolved type name looks like a DTO."""
    if return_type.lower() in PRIMITIVE_TYPES:
        return False
    if return_type.endswith(DTO_SUFFIXES):
        return True
    # Promise<T> is accepted without inspecting T.
    if "Promise" in return_type:
        return True
    if "Array" in return_type or return_type.endswith("[]"):
        return True
    return bool(_TYPE_NAME_RE.match(return_type))


def decorator_name(decorator: Node) -> str:
    """Return ``Get`` for both ``@Get`` and ``@Get('path')``."""
    expression = decorator.named_children[0] if decorator.named_children else None
    if expression is None:
        return ""
    if expression.type == "call_expression":
        expression = expression.child_by_field_name("function")
    if expression is None:
        return ""
    if expression.type == "member_expression":
        return node_text(expression.child_by_field_name("property"))
    return node_text(expression)


def _has_controller_decorator(class_node: Node) -> bool:
    decorators = [child for child in class_node.children if child.type == "decorator"]
    parent = class_node.parent
    if parent is not None and parent.type == "export_statement":
        decorators.extend(child for child in parent.children if child.type == "decorator")
    return any(decorator_name(item) == CONTROLLER_DECORATOR for item in decorators)


def _class_methods(class_node: Node) -> list[tuple[Node, set[str]]]:
    body = class_node.child_by_field_name("body")
    if body is None:
        return []

    methods: list[tuple[Node, set[str]]] = []
    pending: list[Node] = []
    for member in body.named_children:
        if member.type == "decorator":
            pending.append(member)
            continue
        if member.type == "comment":
            continue
        if member.type == "method_definition":
            name_node = member.child_by_field_name("name")
            own = [child for child in member.children if child.type == "decorator"]
            if name_node is not None and name_node.type == "property_identifier":
                methods.append((member, {decorator_name(item) for item in pending + own}))
        pending = []
    return methods


def _is_async(method: Node) -> bool:
    return any(child.type == "async" for child in method.children)
