"""
채팅 메시지 정규화
트위치 태그(display-name, color, emotes) → 오버레이로 보내는 ChatEvent
"""

import re
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Optional, Sequence

from ..errors import EmoteParseError
from .base_client import ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_USERNAME = "Anonymous"
DEFAULT_COLOR = "#ffffff"

# "start-end" (ASCII 숫자만)
_POSITION_PATTERN = re.compile(r"^([0-9]+)-([0-9]+)$")


@dataclass(frozen=True)
class EmoteSpan:
    """메시지 안의 이모트 위치 (start, end 모두 포함, 0부터)"""
    id: str
    start: int
    end: int


@dataclass
class ChatEvent:
    """오버레이 클라이언트로 보내는 chatMessage 이벤트"""
    username: str
    message: str
    color: str
    emotes: list[EmoteSpan] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def parse_emotes_tag(raw: Optional[str]) -> dict[str, list[str]]:
    """
    IRC emotes 태그 원문을 {emote_id: ["start-end", ...]} 로 변환

    예: "25:0-4,10-14/1:16-18" → {"25": ["0-4", "10-14"], "1": ["16-18"]}
    순서는 태그에 나온 순서 그대로. 비어 있으면 빈 dict.
    """
    emotes: dict[str, list[str]] = {}
    if not raw:
        return emotes
    for part in raw.split("/"):
        if not part:
            continue
        emote_id, _, positions = part.partition(":")
        tokens = [p for p in positions.split(",") if p]
        emotes.setdefault(emote_id, []).extend(tokens)
    return emotes


def extract_emote_spans(emote_map: Optional[Mapping[str, Sequence[str]]]) -> list[EmoteSpan]:
    """
    {emote_id: ["start-end", ...]} → EmoteSpan 목록

    id 순서 → 위치 순서 그대로 펼친다 (정렬/중복 제거 없음).
    위치 값은 메시지 길이와 비교하지 않는다.

    Raises:
        EmoteParseError: 숫자가 아닌 위치 토큰
    """
    spans: list[EmoteSpan] = []
    if not emote_map:
        return spans
    for emote_id, positions in emote_map.items():
        for token in positions:
            m = _POSITION_PATTERN.match(str(token).strip())
            if not m:
                raise EmoteParseError(str(emote_id), str(token))
            spans.append(EmoteSpan(id=str(emote_id), start=int(m.group(1)), end=int(m.group(2))))
    return spans


def normalize(message: str, tags: Optional[Mapping[str, Any]]) -> ChatEvent:
    """
    원시 메시지 + 태그 → ChatEvent (I/O 없음)

    display-name, color가 없거나 빈 값이면 "Anonymous", "#ffffff" 사용.
    emotes가 아직 원문 문자열이면 먼저 파싱한다.
    """
    tags = tags or {}
    emotes = tags.get("emotes")
    if isinstance(emotes, str):
        emotes = parse_emotes_tag(emotes)
    return ChatEvent(
        username=tags.get("display-name") or DEFAULT_USERNAME,
        message=message,
        color=tags.get("color") or DEFAULT_COLOR,
        emotes=extract_emote_spans(emotes),
    )


class ChatParser:
    """수신 알림(ChatMessage)을 ChatEvent로 바꾸는 래퍼. 실패한 메시지는 로그 후 버림."""

    def __init__(self, include_echo: bool = True):
        """
        Args:
            include_echo: 자기 자신이 보낸 메시지(is_echo)도 내보낼지
        """
        self.include_echo = include_echo

    def parse(self, chat_message: ChatMessage) -> Optional[ChatEvent]:
        """
        ChatMessage → ChatEvent

        Returns:
            ChatEvent 또는 None (정규화 실패, 에코 제외 시)
        """
        if chat_message.is_echo and not self.include_echo:
            return None
        try:
            return normalize(chat_message.message, chat_message.tags)
        except EmoteParseError as e:
            logger.warning(f"메시지 버림 ({chat_message.channel}): {e}")
            return None
        except Exception as e:
            logger.error(f"메시지 정규화 실패: {e}, 원본: {chat_message}", exc_info=True)
            return None
