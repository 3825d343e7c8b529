import pytest

from twitch_overlay.chat import (
    ChatEvent,
    ChatMessage,
    ChatParser,
    EmoteSpan,
    extract_emote_spans,
    normalize,
    parse_emotes_tag,
)
from twitch_overlay.errors import EmoteParseError


@pytest.mark.parametrize("tags", [{}, {"display-name": ""}, {"display-name": None}, None])
def test_username_falls_back_to_anonymous(tags):
    event = normalize("hello", tags)
    assert event.username == "Anonymous"


@pytest.mark.parametrize("tags", [{}, {"color": ""}, {"color": None}])
def test_color_falls_back_to_white(tags):
    event = normalize("hello", tags)
    assert event.color == "#ffffff"


def test_message_text_is_unmodified():
    text = "  LUL   <b>hi</b> é "
    assert normalize(text, {}).message == text


def test_extract_repeated_emote_spans_in_order():
    spans = extract_emote_spans({"25": ["0-4", "10-14"]})
    assert spans == [EmoteSpan(id="25", start=0, end=4), EmoteSpan(id="25", start=10, end=14)]


def test_extract_keeps_mapping_order_not_position_order():
    spans = extract_emote_spans({"9": ["20-22"], "1": ["0-2", "5-7"]})
    assert [(s.id, s.start, s.end) for s in spans] == [("9", 20, 22), ("1", 0, 2), ("1", 5, 7)]


@pytest.mark.parametrize("emote_map", [None, {}])
def test_extract_absent_map_is_empty(emote_map):
    assert extract_emote_spans(emote_map) == []


def test_extract_does_not_clamp_offsets():
    # 메시지 길이를 넘는 위치도 그대로 전달
    event = normalize("hi", {"emotes": {"7": ["100-200"]}})
    assert event.emotes == [EmoteSpan(id="7", start=100, end=200)]


@pytest.mark.parametrize("token", ["a-b", "1-", "-2", "1_2", "12", "1-2-3", "١-٢"])
def test_extract_rejects_malformed_token(token):
    with pytest.raises(EmoteParseError) as exc_info:
        extract_emote_spans({"25": [token]})
    assert exc_info.value.emote_id == "25"
    assert exc_info.value.token == token


def test_parse_emotes_tag():
    assert parse_emotes_tag("25:0-4,10-14/1:16-18") == {"25": ["0-4", "10-14"], "1": ["16-18"]}
    assert parse_emotes_tag("") == {}
    assert parse_emotes_tag(None) == {}


def test_normalize_accepts_raw_emotes_tag():
    event = normalize("Kappa Kappa", {"emotes": "25:0-4,6-10"})
    assert event.emotes == [EmoteSpan("25", 0, 4), EmoteSpan("25", 6, 10)]


def test_normalize_end_to_end_shape():
    tags = {"display-name": "Bob", "color": "#ff0000", "emotes": {"1": ["0-2"]}}
    event = normalize("LUL hi", tags)
    assert event.to_dict() == {
        "username": "Bob",
        "message": "LUL hi",
        "color": "#ff0000",
        "emotes": [{"id": "1", "start": 0, "end": 2}],
    }


def test_repeated_messages_are_not_deduplicated():
    parser = ChatParser()
    msg = ChatMessage(channel="mychannel", tags={"display-name": "Bob"}, message="spam")
    events = [parser.parse(msg), parser.parse(msg)]
    assert all(isinstance(e, ChatEvent) for e in events)
    assert events[0] == events[1]
    assert events[0] is not events[1]


def test_parser_drops_malformed_message(caplog):
    parser = ChatParser()
    msg = ChatMessage(channel="mychannel", tags={"emotes": {"25": ["x-y"]}}, message="Kappa")
    assert parser.parse(msg) is None
    assert "x-y" in caplog.text


def test_parser_can_skip_echo():
    msg = ChatMessage(channel="mychannel", tags={}, message="hi", is_echo=True)
    assert ChatParser(include_echo=False).parse(msg) is None
    assert ChatParser().parse(msg) is not None
