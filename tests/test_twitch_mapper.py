from types import SimpleNamespace

from adapters.twitch_mapper import build_chat_line


def _message(text="!codefall", chatter_name="Graham", display_name="Graham", broadcaster="LoadingReadyRun"):
    return SimpleNamespace(
        text=text,
        chatter=SimpleNamespace(name=chatter_name, display_name=display_name),
        broadcaster=SimpleNamespace(name=broadcaster),
    )


def test_chat_message_is_mapped_to_a_public_line() -> None:
    line = build_chat_line(_message())

    assert line.text == "!codefall"
    assert line.nick == "graham"
    assert line.channel == "loadingreadyrun"
    assert line.display_name == "Graham"
    assert line.public


def test_missing_display_name_is_none() -> None:
    line = build_chat_line(_message(display_name=""))

    assert line.display_name is None


def test_missing_text_becomes_empty() -> None:
    line = build_chat_line(_message(text=None))

    assert line.text == ""


def test_private_lines_can_be_flagged() -> None:
    assert not build_chat_line(_message(), public=False).public
