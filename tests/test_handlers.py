from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from core.config import CommandConfig
from core.handlers import CommandHandlers, parse_codefall_limit
from core.models import ChatContext, Code

URL = "https://pump19.eu/codefall"


class FakeChat:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    @property
    def is_connected(self) -> bool:
        return True

    async def send(self, channel: str, text: str) -> None:
        self.sent.append((channel, text))


class FakeRepository:
    def __init__(self, codes: Optional[list[Code]] = None) -> None:
        self.codes = codes or []
        self.requests: list[tuple[str, int]] = []

    async def fetch_by_key(self, key: str) -> Optional[Code]:
        return None

    async def fetch_random(self, owner: str, limit: int) -> list[Code]:
        self.requests.append((owner, limit))
        return self.codes[:limit]


def _handlers(repository: FakeRepository) -> CommandHandlers:
    return CommandHandlers(
        repository,
        CommandConfig(
            triggers=("!",),
            codefall_url=URL,
            help_url="https://pump19.eu/commands",
            bingo_url="https://pump19.eu/bingo",
        ),
    )


def _context(chat: FakeChat) -> ChatContext:
    return ChatContext(chat=chat, source="graham", target="loadingreadyrun")


@pytest.mark.parametrize("raw", ["", "0", "4", "abc", "-1", "99"])
def test_codefall_limit_clamps_to_one(raw: str) -> None:
    assert parse_codefall_limit(raw) == 1


@pytest.mark.parametrize("raw,expected", [("1", 1), ("2", 2), ("3", 3)])
def test_codefall_limit_accepts_one_to_three(raw: str, expected: int) -> None:
    assert parse_codefall_limit(raw) == expected


@pytest.mark.parametrize("arg", ["", "0", "4", "abc"])
def test_invalid_codefall_argument_behaves_like_plain_codefall(arg: str) -> None:
    repository = FakeRepository([Code("Portal 2", "Steam", "abc123")])
    chat = FakeChat()

    asyncio.run(_handlers(repository).codefall(_context(chat), [arg]))

    assert repository.requests == [("graham", 1)]
    assert chat.sent == [
        ("loadingreadyrun", f"Codefall | Portal 2 (Steam) {URL}/abc123"),
    ]


def test_codefall_returns_fewer_entries_than_requested() -> None:
    repository = FakeRepository([Code("Portal 2", "Steam", "abc123")])
    chat = FakeChat()

    asyncio.run(_handlers(repository).codefall(_context(chat), ["2"]))

    assert repository.requests == [("graham", 2)]
    assert chat.sent == [
        ("loadingreadyrun", f"Codefall | Portal 2 (Steam) {URL}/abc123"),
    ]


def test_codefall_joins_multiple_entries() -> None:
    repository = FakeRepository(
        [
            Code("Portal 2", "Steam", "abc123"),
            Code("Celeste", "GOG", "def456"),
        ]
    )
    chat = FakeChat()

    asyncio.run(_handlers(repository).codefall(_context(chat), ["3"]))

    assert chat.sent == [
        (
            "loadingreadyrun",
            f"Codefall | Portal 2 (Steam) {URL}/abc123 | Celeste (GOG) {URL}/def456",
        ),
    ]


def test_codefall_without_entries_replies_friendly_message() -> None:
    chat = FakeChat()

    asyncio.run(_handlers(FakeRepository()).codefall(_context(chat), [""]))

    assert chat.sent == [
        (
            "loadingreadyrun",
            f"Could not find any unclaimed codes. Visit {URL} to add new entries.",
        ),
    ]


def test_multiples_of_ten() -> None:
    chat = FakeChat()

    asyncio.run(_handlers(FakeRepository()).multiples(_context(chat), ["10"]))

    assert len(chat.sent) == 1
    channel, text = chat.sent[0]
    assert channel == "loadingreadyrun"
    parts = text.split(" | ")
    assert parts[0] == "Multiples of $10.00"
    values = parts[1:]
    assert values == [
        f"${10 * m}.00" for m in (2, 3, 4, 5, 6, 7, 8, 9, 10, 25, 50, 100)
    ]


def test_multiples_keeps_two_decimals() -> None:
    chat = FakeChat()

    asyncio.run(_handlers(FakeRepository()).multiples(_context(chat), ["0.05"]))

    assert chat.sent[0][1].startswith("Multiples of $0.05 | $0.10 | $0.15")
    assert chat.sent[0][1].endswith("$5.00")


@pytest.mark.parametrize("amount", ["1001", "abc", "1000.01", ""])
def test_multiples_rejects_invalid_amounts_silently(amount: str) -> None:
    chat = FakeChat()

    asyncio.run(_handlers(FakeRepository()).multiples(_context(chat), [amount]))

    assert chat.sent == []


def test_multiples_accepts_upper_bound() -> None:
    chat = FakeChat()

    asyncio.run(_handlers(FakeRepository()).multiples(_context(chat), ["1000"]))

    assert chat.sent[0][1].endswith("$100000.00")


def test_help_and_bingo_are_static() -> None:
    chat = FakeChat()
    handlers = _handlers(FakeRepository())

    asyncio.run(handlers.help(_context(chat), []))
    asyncio.run(handlers.bingo(_context(chat), []))

    assert "https://pump19.eu/commands" in chat.sent[0][1]
    assert "https://pump19.eu/bingo" in chat.sent[1][1]
