"""
트위치 IRC 클라이언트 (읽기 전용, 익명 로그인)
실시간 채팅 메시지를 수신합니다.

참고: https://dev.twitch.tv/docs/chat/irc/
"""

import asyncio
import logging
import random
import ssl
from dataclasses import dataclass, field
from typing import Optional

from .base_client import ChatClient, ChatMessage, MessageCallback
from .chat_parser import parse_emotes_tag

logger = logging.getLogger(__name__)

TWITCH_IRC_HOST = "irc.chat.twitch.tv"
TWITCH_IRC_PORT = 6697

# IRCv3 태그 값 이스케이프
_TAG_ESCAPES = {":": ";", "s": " ", "\\": "\\", "r": "\r", "n": "\n"}


@dataclass
class IRCLine:
    """파싱된 IRC 한 줄"""
    command: str
    params: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)
    prefix: Optional[str] = None

    @property
    def nick(self) -> str:
        if not self.prefix:
            return ""
        return self.prefix.split("!", 1)[0]


def unescape_tag_value(value: str) -> str:
    out = []
    chars = iter(value)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, None)
        if nxt is None:
            break
        out.append(_TAG_ESCAPES.get(nxt, nxt))
    return "".join(out)


def parse_irc_line(line: str) -> IRCLine:
    """
    IRC 한 줄 파싱: [@tags] [:prefix] COMMAND [params...] [:trailing]

    Raises:
        ValueError: 명령이 없는 줄
    """
    line = line.rstrip("\r\n")
    tags: dict[str, str] = {}
    prefix = None

    if line.startswith("@"):
        raw_tags, _, line = line[1:].partition(" ")
        for item in raw_tags.split(";"):
            if not item:
                continue
            key, _, value = item.partition("=")
            tags[key] = unescape_tag_value(value)
        line = line.lstrip(" ")

    if line.startswith(":"):
        prefix, _, line = line[1:].partition(" ")
        line = line.lstrip(" ")

    trailing = None
    if " :" in line:
        line, trailing = line.split(" :", 1)
    elif line.startswith(":"):
        line, trailing = "", line[1:]

    parts = line.split()
    if not parts:
        raise ValueError(f"IRC 명령 없음: {line!r}")
    params = parts[1:]
    if trailing is not None:
        params.append(trailing)
    return IRCLine(command=parts[0].upper(), params=params, tags=tags, prefix=prefix)


class TwitchIRCClient(ChatClient):
    """트위치 IRC 클라이언트

    justinfan 익명 계정으로 접속하므로 토큰이 필요 없고 채팅 읽기만 가능합니다.
    연결이 끊기거나 서버가 RECONNECT를 보내면 기본 클래스의 지수 백오프로 재연결합니다.
    """

    @property
    def platform_name(self) -> str:
        """플랫폼 이름"""
        return "twitch"

    def __init__(
        self,
        channel_id: str,
        on_message: Optional[MessageCallback] = None,
        reconnect_delay: float = 5.0,
        max_reconnect_attempts: int = 10,
        host: str = TWITCH_IRC_HOST,
        port: int = TWITCH_IRC_PORT,
        use_ssl: bool = True,
        nickname: Optional[str] = None,
    ):
        """
        Args:
            channel_id: 트위치 채널 이름 (# 없이)
            on_message: 메시지 수신 시 호출할 콜백 함수
            reconnect_delay: 재연결 지연 시간 (초)
            max_reconnect_attempts: 최대 재연결 시도 횟수
            host, port, use_ssl: IRC 서버 주소
            nickname: 로그인 닉네임 (기본: justinfan + 임의 숫자)
        """
        super().__init__(channel_id.lstrip("#").lower(), on_message, reconnect_delay, max_reconnect_attempts)
        self.host = host
        self.port = port
        self.use_ssl = use_ssl
        self.nickname = nickname or f"justinfan{random.randint(10000, 99999)}"

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    async def _send(self, line: str):
        if self._writer is None:
            return
        self._writer.write(f"{line}\r\n".encode("utf-8"))
        await self._writer.drain()

    async def connect(self):
        """IRC 연결 + 로그인 + 채널 입장"""
        try:
            logger.info(f"[{self.platform_name}] IRC 연결 시도: {self.host}:{self.port}")
            ssl_ctx = ssl.create_default_context() if self.use_ssl else None
            self._reader, self._writer = await asyncio.open_connection(
                self.host, self.port, ssl=ssl_ctx
            )
            await self._send("CAP REQ :twitch.tv/tags twitch.tv/commands")
            await self._send("PASS SCHMOOPIIE")
            await self._send(f"NICK {self.nickname}")
            await self._send(f"JOIN #{self.channel_id}")

            self.is_connected = True
            self.reconnect_attempts = 0
            logger.info(f"[{self.platform_name}] IRC 연결 성공: #{self.channel_id}")

        except Exception as e:
            logger.error(f"[{self.platform_name}] 연결 실패: {e}")
            self.is_connected = False
            raise

    async def disconnect(self):
        """IRC 연결 종료"""
        writer, self._writer, self._reader = self._writer, None, None
        self.is_connected = False
        if writer is None:
            return
        try:
            writer.close()
            await writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug(f"[{self.platform_name}] 소켓 종료 중 오류 무시: {e}")
        logger.info(f"[{self.platform_name}] IRC 연결 종료")

    async def listen(self):
        """메시지 수신 루프"""
        self._running = True

        while self._running:
            try:
                if not self.is_connected or self._reader is None:
                    if not await super()._reconnect():
                        break
                    continue

                raw = await self._reader.readline()
                if not raw:
                    logger.warning(f"[{self.platform_name}] 서버가 연결을 닫음")
                    await self.disconnect()
                    continue

                await self.handle_line(raw.decode("utf-8", errors="replace"))

            except Exception as e:
                logger.error(f"[{self.platform_name}] 예상치 못한 오류: {e}")
                await self.disconnect()
                await asyncio.sleep(1)

    async def handle_line(self, raw: str):
        """IRC 한 줄 처리 (PING 응답, RECONNECT, PRIVMSG → on_message)"""
        if not raw.strip():
            return
        try:
            line = parse_irc_line(raw)
        except ValueError as e:
            logger.debug(f"[{self.platform_name}] 파싱 불가 줄 무시: {e}")
            return

        if line.command == "PING":
            token = line.params[0] if line.params else "tmi.twitch.tv"
            await self._send(f"PONG :{token}")
        elif line.command == "RECONNECT":
            logger.warning(f"[{self.platform_name}] 서버 RECONNECT 요청")
            await self.disconnect()
        elif line.command == "JOIN" and line.nick == self.nickname:
            logger.info(f"[{self.platform_name}] 채널 입장 완료: {line.params[0] if line.params else ''}")
        elif line.command == "NOTICE":
            logger.warning(f"[{self.platform_name}] NOTICE: {line.params[-1] if line.params else ''}")
        elif line.command == "PRIVMSG":
            await self._dispatch(self._to_chat_message(line))

    def _to_chat_message(self, line: IRCLine) -> ChatMessage:
        tags: dict = dict(line.tags)
        tags["emotes"] = parse_emotes_tag(line.tags.get("emotes"))
        text = line.params[-1] if len(line.params) > 1 else ""
        return self._create_message(
            tags=tags,
            message=text,
            user=tags.get("display-name") or line.nick,
            is_echo=line.nick == self.nickname,
            message_id=tags.get("id"),
            user_id=tags.get("user-id"),
        )
