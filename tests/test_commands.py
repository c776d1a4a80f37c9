from __future__ import annotations

from typing import Optional

import pytest

from core.commands import (
    CODEFALL_PATTERN,
    MULTIPLES_PATTERN,
    build_command,
    match_command,
    strip_trigger,
)
from core.config import CommandConfig
from core.handlers import CommandHandlers
from core.models import Code


class FakeRepository:
    async def fetch_by_key(self, key: str) -> Optional[Code]:
        return None

    async def fetch_random(self, owner: str, limit: int) -> list[Code]:
        return []


def _commands():
    handlers = CommandHandlers(FakeRepository(), CommandConfig(triggers=("!",)))
    return handlers.commands()


def _matched_name(text: str) -> Optional[str]:
    found = match_command(text, _commands())
    return found.command.name if found else None


def test_strip_trigger_uses_any_configured_prefix() -> None:
    assert strip_trigger("!codefall", ("!", "?")) == "codefall"
    assert strip_trigger("?codefall 2", ("!", "?")) == "codefall 2"
    assert strip_trigger("codefall", ("!", "?")) is None
    assert strip_trigger(" !codefall", ("!",)) is None


def test_codefall_captures_optional_argument() -> None:
    found = match_command("codefall", _commands())
    assert found is not None
    assert found.command.name == "codefall"
    assert found.args == [""]

    found = match_command("codefall 2", _commands())
    assert found is not None
    assert found.args == ["2"]

    found = match_command("codefall abc", _commands())
    assert found is not None
    assert found.args == ["abc"]


@pytest.mark.parametrize("alias", ["mult", "multi", "multiple", "multiples", "multiply"])
def test_multiples_aliases(alias: str) -> None:
    found = match_command(f"{alias} 12.50", _commands())
    assert found is not None
    assert found.command.name == "multiples"
    assert found.args == ["12.50"]


def test_multiples_accepts_dollar_sign_and_rejects_three_decimals() -> None:
    found = match_command("mult $5", _commands())
    assert found is not None
    assert found.args == ["5"]
    assert _matched_name("mult 1.234") is None
    assert _matched_name("mult abc") is None


def test_static_commands_are_anchored() -> None:
    assert _matched_name("help") == "help"
    assert _matched_name("bingo") == "bingo"
    assert _matched_name("help me") is None
    assert _matched_name("xbingo") is None
    assert _matched_name("codefall 2 3") is None


def test_matching_is_case_sensitive() -> None:
    assert _matched_name("Codefall") is None
    assert _matched_name("HELP") is None


def test_first_declared_command_wins() -> None:
    async def first(context, args) -> None:
        return None

    async def second(context, args) -> None:
        return None

    commands = [
        build_command("first", r"^(.*)$", first),
        build_command("second", CODEFALL_PATTERN, second),
    ]
    found = match_command("codefall", commands)
    assert found is not None
    assert found.command.name == "first"


def test_command_rejects_more_than_one_group() -> None:
    async def handler(context, args) -> None:
        return None

    with pytest.raises(ValueError):
        build_command("broken", r"^(a) (b)$", handler)

    # One group is fine.
    build_command("mult", MULTIPLES_PATTERN, handler)
