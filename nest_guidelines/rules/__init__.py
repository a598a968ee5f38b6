"""Rules package."""

from collections.abc import Callable
from dataclasses import dataclass

from nest_guidelines.config import AppConfig
from nest_guidelines.rules.base import Finding, Rule
from nest_guidelines.rules.controller_return_type import ControllerReturnTypeRule
from nest_guidelines.rules.file_naming import FileNamingRule
from nest_guidelines.rules.interface_naming import InterfaceNamingRule

__all__ = [
    "Finding",
    "Rule",
    "RuleInfo",
    "build_rules",
    "default_rules",
    "list_rule_info",
]


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing and selection."""

    rule_id: str
    name: str
    description: str


@dataclass(frozen=True, slots=True)
class _RuleSpec:
    rule_id: str
    factory: Callable[[], Rule]
    name: str
    description: str


def default_rules() -> list[Rule]:
    """Return every built-in rule in registration order."""
    return build_rules()


def build_rules(
    config: AppConfig | None = None,
    *,
    enabled_rule_ids: list[str] | None = None,
    disabled_rule_ids: list[str] | None = None,
) -> list[Rule]:
    """Build rule instances in registration order, applying enable/disable filters.

    Explicit ``enabled_rule_ids``/``disabled_rule_ids`` take precedence over the
    ``[rules]`` table of ``config``.
    """
    effective = config or AppConfig()
    if enabled_rule_ids is None:
        enabled_rule_ids = effective.rule_enable
    if disabled_rule_ids is None:
        disabled_rule_ids = effective.rule_disable

    specs = _ordered_rule_specs(effective)
    registry = {spec.rule_id: spec for spec in specs}
    requested_ids = set(enabled_rule_ids or []) | set(disabled_rule_ids or [])
    unknown = [rule_id for rule_id in requested_ids if rule_id not in registry]
    if unknown:
        joined = ", ".join(sorted(unknown))
        raise ValueError(f"Unknown rule ids: {joined}")

    disabled_set = set(disabled_rule_ids or [])
    enabled_set = set(enabled_rule_ids) if enabled_rule_ids is not None else None
    built: list[Rule] = []
    for spec in specs:
        if enabled_set is not None and spec.rule_id not in enabled_set:
            continue
        if spec.rule_id in disabled_set:
            continue
        built.append(spec.factory())
    return built


def list_rule_info() -> list[RuleInfo]:
    """Return metadata for all built-in rules."""
    return [
        RuleInfo(rule_id=spec.rule_id, name=spec.name, description=spec.description)
        for spec in _ordered_rule_specs(AppConfig())
    ]


def _ordered_rule_specs(config: AppConfig) -> list[_RuleSpec]:
    return [
        _RuleSpec(
            rule_id=FileNamingRule.rule_id,
            factory=lambda: FileNamingRule(
                extension=config.extension,
                exemptions=config.naming_exemptions,
            ),
            name=FileNamingRule.__name__,
            description=FileNamingRule.description,
        ),
        _RuleSpec(
            rule_id=InterfaceNamingRule.rule_id,
            factory=InterfaceNamingRule,
            name=InterfaceNamingRule.__name__,
            description=InterfaceNamingRule.description,
        ),
        _RuleSpec(
            rule_id=ControllerReturnTypeRule.rule_id,
            factory=lambda: ControllerReturnTypeRule(suffix=config.controller_suffix),
            name=ControllerReturnTypeRule.__name__,
            description=ControllerReturnTypeRule.description,
        ),
    ]
