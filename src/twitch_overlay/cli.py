"""
트위치 채팅 오버레이 실행 CLI.

실행: twitch-overlay -u <채널> -v <높이>  (또는 .env에 TWITCH_CHANNEL, OVERLAY_HEIGHT)
OBS에서 브라우저 소스 추가 → URL에 http://127.0.0.1:3005/ 입력.
"""

import asyncio
import logging
from pathlib import Path

import typer
import uvicorn
from dotenv import load_dotenv

from .chat import ChatClientFactory
from .errors import StartupConfigError
from .overlay import (
    FontResolver,
    OverlayBroadcaster,
    SessionConfig,
    StartupOptions,
    build_session_config,
    create_app,
)
from .overlay.config import DEFAULT_PORT, DEFAULT_SECONDS
from .overlay.fonts import DEFAULT_FONT
from .utils import setup_logging

load_dotenv()

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="twitch-overlay",
    help="Relay Twitch chat to an OBS browser-source overlay",
    add_completion=False,
)


async def serve(
    config: SessionConfig,
    channel: str,
    host: str,
    port: int,
    fonts_dir: Path,
    public_dir: Path,
):
    """오버레이 서버(uvicorn)와 채팅 수신을 같은 이벤트 루프에서 실행"""
    broadcaster = OverlayBroadcaster(config)
    asgi_app = create_app(broadcaster, fonts_dir, public_dir)
    server = uvicorn.Server(uvicorn.Config(asgi_app, host=host, port=port, log_level="warning"))

    client = ChatClientFactory.create(
        platform="twitch",
        channel_id=channel,
        on_message=broadcaster.handle_chat_message,
        reconnect_delay=5.0,
        max_reconnect_attempts=10,
    )
    chat_task = asyncio.create_task(client.start())
    logger.info("Chat overlay at http://%s:%d (channel=#%s)", host, port, client.channel_id)
    try:
        await server.serve()
    finally:
        chat_task.cancel()
        try:
            await chat_task
        except asyncio.CancelledError:
            pass
        await client.stop()


@app.command()
def run(
    port: int = typer.Option(DEFAULT_PORT, "--port", "-p", envvar="OVERLAY_PORT", help="Port to run the server on"),
    username: str = typer.Option(..., "--username", "-u", envvar="TWITCH_CHANNEL", help="Twitch channel username"),
    height: int = typer.Option(
        ..., "--height", "-v", envvar="OVERLAY_HEIGHT",
        help="Viewport height in pixels, set to your intended OBS overlay size in height",
    ),
    seconds: float = typer.Option(
        DEFAULT_SECONDS, "--seconds", "-s", envvar="OVERLAY_SECONDS", help="Seconds each message stays visible"
    ),
    font: str = typer.Option(
        DEFAULT_FONT, "--font", "-f", envvar="OVERLAY_FONT", help="Font for message text (name in fonts/ folder)"
    ),
    namefont: str = typer.Option(
        DEFAULT_FONT, "--namefont", "-n", envvar="OVERLAY_NAMEFONT", help="Font for usernames (name in fonts/ folder)"
    ),
    fonts_dir: Path = typer.Option(Path("fonts"), "--fonts-dir", envvar="OVERLAY_FONTS_DIR", help="Fonts folder"),
    public_dir: Path = typer.Option(
        Path("public"), "--public-dir", envvar="OVERLAY_PUBLIC_DIR", help="Optional folder with a custom index.html"
    ),
    host: str = typer.Option("127.0.0.1", "--host", envvar="OVERLAY_HOST", help="Bind address"),
    log_dir: Path = typer.Option(Path("logs"), "--log-dir", envvar="OVERLAY_LOG_DIR", help="Log folder"),
):
    """Start the overlay server and relay chat from the given channel."""
    setup_logging(log_dir)

    options = StartupOptions(
        username=username,
        height=height,
        port=port,
        seconds=seconds,
        font=font,
        namefont=namefont,
    )
    try:
        config = build_session_config(options, FontResolver(fonts_dir))
    except StartupConfigError as e:
        for error in e.errors:
            typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(code=2)

    logger.info(
        "Server settings: port=%d, channel=%s, height=%d, seconds=%s, messageFont=%s, namefont=%s",
        port, username, config.viewport_height, config.message_seconds, config.message_font, config.name_font,
    )
    try:
        asyncio.run(serve(config, username, host, port, fonts_dir, public_dir))
    except KeyboardInterrupt:
        logger.info("종료")


def main():
    app()


if __name__ == "__main__":
    main()
