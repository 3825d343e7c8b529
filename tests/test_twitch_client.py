from unittest.mock import AsyncMock, MagicMock

import pytest

from twitch_overlay.chat import ChatClientFactory, ChatMessage, TwitchIRCClient
from twitch_overlay.chat.twitch_client import parse_irc_line, unescape_tag_value

PRIVMSG = (
    "@badge-info=;color=#FF0000;display-name=Bob;emotes=1:0-2;id=abc-123;user-id=42 "
    ":bob!bob@bob.tmi.twitch.tv PRIVMSG #mychannel :LUL hi\r\n"
)


def _client_with_writer(on_message=None):
    client = TwitchIRCClient("MyChannel", on_message=on_message, nickname="justinfan12345")
    writer = MagicMock()
    writer.drain = AsyncMock()
    client._writer = writer
    client.is_connected = True
    return client, writer


def test_parse_privmsg_line():
    line = parse_irc_line(PRIVMSG)
    assert line.command == "PRIVMSG"
    assert line.params == ["#mychannel", "LUL hi"]
    assert line.nick == "bob"
    assert line.tags["display-name"] == "Bob"
    assert line.tags["badge-info"] == ""


def test_parse_ping_line():
    line = parse_irc_line("PING :tmi.twitch.tv")
    assert line.command == "PING"
    assert line.params == ["tmi.twitch.tv"]
    assert line.prefix is None


def test_parse_trailing_keeps_colons():
    line = parse_irc_line(":a!a@a PRIVMSG #c :see: this :)")
    assert line.params == ["#c", "see: this :)"]


def test_parse_empty_line_raises():
    with pytest.raises(ValueError):
        parse_irc_line("\r\n")


@pytest.mark.parametrize(
    "raw, expected",
    [
        (r"hello\sworld", "hello world"),
        (r"a\:b", "a;b"),
        (r"back\\slash", "back\\slash"),
        (r"line\nbreak", "line\nbreak"),
        ("trailing\\", "trailing"),
    ],
)
def test_unescape_tag_value(raw, expected):
    assert unescape_tag_value(raw) == expected


def test_channel_is_normalized():
    assert TwitchIRCClient("#MyChannel").channel_id == "mychannel"


@pytest.mark.asyncio
async def test_privmsg_dispatches_chat_message():
    received = []
    client, _ = _client_with_writer(on_message=received.append)
    await client.handle_line(PRIVMSG)
    assert len(received) == 1
    msg = received[0]
    assert isinstance(msg, ChatMessage)
    assert msg.channel == "mychannel"
    assert msg.message == "LUL hi"
    assert msg.is_echo is False
    assert msg.tags["emotes"] == {"1": ["0-2"]}
    assert msg.user_id == "42"
    assert msg.message_id == "abc-123"
    assert msg.platform == "twitch"


@pytest.mark.asyncio
async def test_async_callback_is_awaited():
    on_message = AsyncMock()
    client, _ = _client_with_writer(on_message=on_message)
    await client.handle_line(PRIVMSG)
    on_message.assert_awaited_once()


@pytest.mark.asyncio
async def test_callback_error_does_not_break_loop(caplog):
    def boom(message):
        raise RuntimeError("callback failed")

    client, _ = _client_with_writer(on_message=boom)
    await client.handle_line(PRIVMSG)
    assert "callback failed" in caplog.text


@pytest.mark.asyncio
async def test_ping_answers_pong():
    client, writer = _client_with_writer()
    await client.handle_line("PING :tmi.twitch.tv\r\n")
    writer.write.assert_called_once_with(b"PONG :tmi.twitch.tv\r\n")


@pytest.mark.asyncio
async def test_reconnect_command_drops_connection():
    client, writer = _client_with_writer()
    writer.wait_closed = AsyncMock()
    await client.handle_line(":tmi.twitch.tv RECONNECT\r\n")
    assert client.is_connected is False
    writer.close.assert_called_once()


@pytest.mark.asyncio
async def test_connect_sends_anonymous_login(monkeypatch):
    reader = MagicMock()
    writer = MagicMock()
    writer.drain = AsyncMock()
    open_connection = AsyncMock(return_value=(reader, writer))
    monkeypatch.setattr("twitch_overlay.chat.twitch_client.asyncio.open_connection", open_connection)

    client = TwitchIRCClient("mychannel", nickname="justinfan12345", use_ssl=False)
    await client.connect()

    sent = [c.args[0] for c in writer.write.call_args_list]
    assert sent == [
        b"CAP REQ :twitch.tv/tags twitch.tv/commands\r\n",
        b"PASS SCHMOOPIIE\r\n",
        b"NICK justinfan12345\r\n",
        b"JOIN #mychannel\r\n",
    ]
    assert client.is_connected is True
    open_connection.assert_awaited_once_with("irc.chat.twitch.tv", 6697, ssl=None)


@pytest.mark.asyncio
async def test_reconnect_gives_up_after_max_attempts():
    client = TwitchIRCClient("mychannel", max_reconnect_attempts=0)
    assert await client._reconnect() is False


@pytest.mark.asyncio
async def test_start_keeps_retrying_until_attempts_run_out(monkeypatch):
    open_connection = AsyncMock(side_effect=OSError("network down"))
    monkeypatch.setattr("twitch_overlay.chat.twitch_client.asyncio.open_connection", open_connection)

    client = TwitchIRCClient("mychannel", reconnect_delay=0.001, max_reconnect_attempts=5, use_ssl=False)
    await client.start()

    # 첫 연결 1회 + 재연결 5회
    assert open_connection.await_count == 6
    assert client.reconnect_attempts == 5
    assert client.is_connected is False


@pytest.mark.asyncio
async def test_start_recovers_after_failed_first_connect(monkeypatch):
    reader = MagicMock()
    reader.readline = AsyncMock(side_effect=[PRIVMSG.encode(), b""])
    writer = MagicMock()
    writer.drain = AsyncMock()
    writer.wait_closed = AsyncMock()
    open_connection = AsyncMock(side_effect=[OSError("network down"), (reader, writer), OSError("gone")])
    monkeypatch.setattr("twitch_overlay.chat.twitch_client.asyncio.open_connection", open_connection)

    received = []
    client = TwitchIRCClient(
        "mychannel", on_message=received.append, reconnect_delay=0.001, max_reconnect_attempts=1, use_ssl=False
    )
    await client.start()

    assert [m.message for m in received] == ["LUL hi"]
    assert open_connection.await_count == 3


def test_factory_creates_twitch_client():
    client = ChatClientFactory.create("twitch", channel_id="mychannel")
    assert isinstance(client, TwitchIRCClient)
    assert "twitch" in ChatClientFactory.get_supported_platforms()


def test_factory_rejects_unknown_platform():
    with pytest.raises(ValueError):
        ChatClientFactory.create("nope", channel_id="mychannel")
