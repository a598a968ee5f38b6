"""Config loading and rules/config CLI command tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from nest_guidelines.cli import app
from nest_guidelines.config import AppConfig, default_config_template, load_app_config
from nest_guidelines.rules import build_rules, list_rule_info
from nest_guidelines.rules.controller_return_type import ControllerReturnTypeRule
from nest_guidelines.rules.file_naming import FileNamingRule

runner = CliRunner()


def test_load_app_config_defaults_without_files(tmp_path: Path) -> None:
    config = load_app_config(tmp_path)
    assert config == AppConfig()
    assert config.source is None
    assert config.search_dirs == ["src", "lib", "app"]
    assert config.project_marker == "package.json"


def test_load_app_config_prefers_dot_file_over_pyproject(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "pyproject.toml").write_text(
        "\n".join(
            [
                "[tool.nest_guidelines]",
                'format = "human"',
                "workers = 2",
            ]
        ),
        encoding="utf-8",
    )
    (repo / ".nest-guidelines.toml").write_text(
        "\n".join(
            [
                'format = "json"',
                "workers = 4",
                'search_dirs = ["packages"]',
                'base_branch = "main"',
                "",
                "[rules]",
                'enable = ["file-naming", "interface-naming"]',
                'disable = ["interface-naming"]',
                "",
                "[naming]",
                'exemptions = ["main.ts"]',
            ]
        ),
        encoding="utf-8",
    )

    config = load_app_config(repo)
    assert config.format == "json"
    assert config.workers == 4
    assert config.search_dirs == ["packages"]
    assert config.base_branch == "main"
    assert config.rule_enable == ["file-naming", "interface-naming"]
    assert config.rule_disable == ["interface-naming"]
    assert config.naming_exemptions == ["main.ts"]
    assert config.source == str(repo / ".nest-guidelines.toml")


def test_load_app_config_reads_pyproject_hyphenated_key(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "pyproject.toml").write_text(
        "\n".join(
            [
                '[tool."nest-guidelines"]',
                'extension = ".tsx"',
                "",
                '[tool."nest-guidelines".controller]',
                'suffix = ".handler.tsx"',
            ]
        ),
        encoding="utf-8",
    )

    config = load_app_config(repo)
    assert config.extension == ".tsx"
    assert config.controller_suffix == ".handler.tsx"
    assert config.source == str(repo / "pyproject.toml")


def test_pyproject_without_tool_section_is_ignored(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n', encoding="utf-8")
    assert load_app_config(tmp_path).source is None


def test_explicit_config_path_must_exist(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="does not exist"):
        load_app_config(tmp_path, config_path=Path("missing.toml"))


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("workers = 0", "workers must be > 0"),
        ("workers = true", "workers must be an integer"),
        ('extension = "ts"', "extension must start with"),
        ('search_dirs = "src"', "list of strings"),
        ('rules = "all"', "rules must be a table"),
        ("workers = [", "Invalid TOML"),
    ],
)
def test_invalid_config_values_raise(tmp_path: Path, content: str, message: str) -> None:
    (tmp_path / ".nest-guidelines.toml").write_text(content + "\n", encoding="utf-8")
    with pytest.raises(ValueError, match=message):
        load_app_config(tmp_path)


def test_default_template_round_trips_to_defaults(tmp_path: Path) -> None:
    (tmp_path / "nest-guidelines.toml").write_text(default_config_template(), encoding="utf-8")
    config = load_app_config(tmp_path)
    assert config.rule_enable == ["file-naming", "interface-naming", "controller-return-type"]
    assert config.naming_exemptions == AppConfig().naming_exemptions
    assert config.base_branch is None


def test_build_rules_applies_enable_and_disable() -> None:
    assert [rule.rule_id for rule in build_rules()] == [
        "file-naming",
        "interface-naming",
        "controller-return-type",
    ]
    rules = build_rules(disabled_rule_ids=["interface-naming"])
    assert [rule.rule_id for rule in rules] == ["file-naming", "controller-return-type"]
    rules = build_rules(enabled_rule_ids=["controller-return-type"])
    assert [rule.rule_id for rule in rules] == ["controller-return-type"]


def test_build_rules_passes_config_to_rules() -> None:
    config = AppConfig(extension=".tsx", controller_suffix=".handler.tsx")
    file_rule, _, controller_rule = build_rules(config)
    assert isinstance(file_rule, FileNamingRule)
    assert file_rule.extension == ".tsx"
    assert isinstance(controller_rule, ControllerReturnTypeRule)
    assert controller_rule.suffix == ".handler.tsx"


def test_build_rules_rejects_unknown_ids() -> None:
    with pytest.raises(ValueError, match="Unknown rule ids: nope"):
        build_rules(enabled_rule_ids=["nope"])


def test_list_rule_info_matches_registration_order() -> None:
    assert [item.rule_id for item in list_rule_info()] == [
        "file-naming",
        "interface-naming",
        "controller-return-type",
    ]


def test_rules_command_json_lists_enabled_state_from_config(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / ".nest-guidelines.toml").write_text(
        "[rules]\ndisable = [\"interface-naming\"]\n",
        encoding="utf-8",
    )

    result = runner.invoke(app, ["rules", "--repo", str(repo), "--format", "json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    rules_by_id = {item["rule_id"]: item for item in payload["rules"]}
    assert rules_by_id["file-naming"]["enabled"] is True
    assert rules_by_id["interface-naming"]["enabled"] is False
    assert rules_by_id["controller-return-type"]["name"] == "ControllerReturnTypeRule"
    assert payload["meta"]["config_source"] == str(repo / ".nest-guidelines.toml")


def test_rules_command_human_output_lists_rule_settings(tmp_path: Path) -> None:
    (tmp_path / "nest-guidelines.toml").write_text(
        "[rules]\ndisable = [\"file-naming\"]\n\n[controller]\nsuffix = \".handler.ts\"\n",
        encoding="utf-8",
    )
    result = runner.invoke(app, ["rules", "--repo", str(tmp_path)])
    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[0] == f"Guideline rules (config: {tmp_path / 'nest-guidelines.toml'}):"
    assert "file-naming [disabled]" in lines
    assert "interface-naming [enabled]" in lines
    assert "  prefix: I" in lines
    assert "  suffix: .handler.ts" in lines
    assert "  http_decorators: Delete, Get, Head, Options, Patch, Post, Put" in lines


def test_unknown_rule_id_in_config_is_a_usage_error(tmp_path: Path) -> None:
    (tmp_path / ".nest-guidelines.toml").write_text(
        "[rules]\nenable = [\"magic\"]\n",
        encoding="utf-8",
    )
    result = runner.invoke(app, ["rules", "--repo", str(tmp_path)])
    assert result.exit_code == 2
    assert "Unknown rule ids: magic" in result.output


def test_config_command_json_reports_active_rules(tmp_path: Path) -> None:
    (tmp_path / ".nest-guidelines.toml").write_text(
        "workers = 3\n\n[rules]\ndisable = [\"file-naming\"]\n",
        encoding="utf-8",
    )
    result = runner.invoke(app, ["config", "--repo", str(tmp_path), "--format", "json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["workers"] == 3
    assert payload["active_rule_ids"] == ["interface-naming", "controller-return-type"]
    assert payload["source"] == str(tmp_path / ".nest-guidelines.toml")


def test_config_command_human_output_uses_defaults(tmp_path: Path) -> None:
    result = runner.invoke(app, ["config", "--repo", str(tmp_path)])
    assert result.exit_code == 0
    assert "Resolved configuration:" in result.stdout
    assert "- source: defaults" in result.stdout
    assert "- controller.suffix: .controller.ts" in result.stdout


def test_config_init_writes_template_into_project_root(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text("{}\n", encoding="utf-8")
    result = runner.invoke(app, ["config-init", "--repo", str(tmp_path)])
    assert result.exit_code == 0
    target = tmp_path / ".nest-guidelines.toml"
    assert target.read_text(encoding="utf-8") == default_config_template()
    assert "Warning:" not in result.output


def test_config_init_refuses_when_project_is_already_configured(tmp_path: Path) -> None:
    existing = tmp_path / "nest-guidelines.toml"
    existing.write_text("workers = 2\n", encoding="utf-8")

    result = runner.invoke(app, ["config-init", "--repo", str(tmp_path)])
    assert result.exit_code == 2
    assert not (tmp_path / ".nest-guidelines.toml").exists()

    result = runner.invoke(app, ["config-init", "--repo", str(tmp_path), "--force"])
    assert result.exit_code == 0
    assert (tmp_path / ".nest-guidelines.toml").exists()
    assert existing.read_text(encoding="utf-8") == "workers = 2\n"


def test_config_init_custom_out_warns_outside_nest_project(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["config-init", "--repo", str(tmp_path), "--out", "config/guidelines.toml"]
    )
    assert result.exit_code == 0
    assert (tmp_path / "config" / "guidelines.toml").exists()
    assert "Warning:" in result.output
