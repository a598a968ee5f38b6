"""Controller return-type rule tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from nest_guidelines.rules.controller_return_type import (
    ControllerReturnTypeRule,
    is_valid_return_type,
)


def _controller(*members: str, decorator: str = "@Controller('users')") -> str:
    return "\n".join(
        [
            "import { Controller, Get, Post } from '@nestjs/common';",
            "",
            decorator,
            "export class UsersController {",
            *members,
            "}",
            "",
        ]
    )


def _validate(tmp_path: Path, source: str, name: str = "Users.controller.ts"):
    target = tmp_path / name
    target.write_text(source, encoding="utf-8")
    return ControllerReturnTypeRule().validate(str(target))


def test_missing_return_type_yields_one_error(tmp_path: Path) -> None:
    source = _controller("  @Get()", "  findAll() {", "    return [];", "  }")
    findings = _validate(tmp_path, source)
    assert len(findings) == 1
    assert findings[0].severity == "error"
    assert "'findAll'" in findings[0].message
    assert "return type" in findings[0].message


def test_primitive_return_type_yields_one_error(tmp_path: Path) -> None:
    source = _controller("  @Post()", "  create(): string {", "    return 'ok';", "  }")
    findings = _validate(tmp_path, source)
    assert len(findings) == 1
    assert findings[0].severity == "error"
    assert "'string'" in findings[0].message
    assert findings[0].line == 6


@pytest.mark.parametrize(
    "signature",
    [
        "  findOne(): IUserDto {",
        "  async findAll(): Promise<IUserDto[]> {",
        "  list(): IUserDto[] {",
        "  page(): Array<IUserDto> {",
        "  entity(): UserEntity {",
    ],
)
def test_dto_like_return_types_are_accepted(tmp_path: Path, signature: str) -> None:
    source = _controller("  @Get()", signature, "    return null as any;", "  }")
    assert _validate(tmp_path, source) == []


def test_promise_without_async_yields_one_warning(tmp_path: Path) -> None:
    source = _controller(
        "  @Get()",
        "  findAll(): Promise<IUserDto[]> {",
        "    return Promise.resolve([]);",
        "  }",
    )
    findings = _validate(tmp_path, source)
    assert [item.severity for item in findings] == ["warning"]
    assert "async" in findings[0].message


@pytest.mark.parametrize(
    "signature",
    [
        "  remove(): void {",
        "  gone(): never {",
        "  raw(): object {",
        "  opaque(): unknown {",
    ],
)
def test_other_builtin_keywords_resolve_to_node_kind(tmp_path: Path, signature: str) -> None:
    source = _controller("  @Delete(':id')", signature, "    throw new Error();", "  }")
    assert _validate(tmp_path, source) == []


@pytest.mark.parametrize("keyword", ["string", "number", "boolean", "any"])
def test_primitive_keywords_are_reported_by_name(tmp_path: Path, keyword: str) -> None:
    source = _controller("  @Get()", f"  value(): {keyword} {{", "    return null as any;", "  }")
    findings = _validate(tmp_path, source)
    assert len(findings) == 1
    assert f"returns '{keyword}'" in findings[0].message


def test_methods_without_http_decorator_are_ignored(tmp_path: Path) -> None:
    source = _controller(
        "  helper() {",
        "    return 1;",
        "  }",
        "  @UseGuards(AuthGuard)",
        "  guarded(): string {",
        "    return 'x';",
        "  }",
    )
    assert _validate(tmp_path, source) == []


def test_classes_without_controller_decorator_are_ignored(tmp_path: Path) -> None:
    source = _controller("  @Get()", "  findAll() {", "    return [];", "  }", decorator="")
    assert _validate(tmp_path, source) == []


def test_bare_controller_decorator_on_unexported_class(tmp_path: Path) -> None:
    source = "\n".join(
        [
            "@Controller",
            "class HealthController {",
            "  @Head()",
            "  ping(): number {",
            "    return 1;",
            "  }",
            "}",
            "",
        ]
    )
    findings = _validate(tmp_path, source)
    assert len(findings) == 1
    assert "'number'" in findings[0].message


def test_non_controller_files_are_skipped(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    Path("Users.service.ts").write_text(
        _controller("  @Get()", "  findAll() {", "    return [];", "  }"),
        encoding="utf-8",
    )
    assert ControllerReturnTypeRule().validate("Users.service.ts") == []


def test_applies_to_matches_token_and_suffix() -> None:
    rule = ControllerReturnTypeRule(suffix=".handler.ts")
    assert rule.applies_to("src/users/UserController.ts")
    assert rule.applies_to("src/users/Users.handler.ts")
    assert not rule.applies_to("src/users/Users.service.ts")


def test_regex_fallback_reports_missing_return_types(tmp_path: Path) -> None:
    source = _controller(
        "  @Get()",
        "  findAll() {",
        "    return [;",
        "  }",
        "",
        "  @Post()",
        "  async create(): IUserDto {",
        "    return {};",
        "  }",
    )
    findings = _validate(tmp_path, source)
    assert len(findings) == 1
    assert "'findAll'" in findings[0].message
    assert findings[0].line == 5
    assert findings[0].column == 0


def test_regex_fallback_cannot_see_primitive_types(tmp_path: Path) -> None:
    source = _controller("  @Post()", "  create(): string {", "    return 'x' +;", "  }")
    assert _validate(tmp_path, source) == []


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("string", False),
        ("Number", False),
        ("any", False),
        ("UserDto", True),
        ("CreateUserResponse", True),
        ("Promise", True),
        ("IUserDto[]", True),
        ("ArrayType", True),
        ("IUser", True),
        ("UnionType", True),
        ("lowercaseThing", False),
    ],
)
def test_is_valid_return_type(name: str, expected: bool) -> None:
    assert is_valid_return_type(name) is expected
