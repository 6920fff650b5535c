#!/usr/bin/env python3
"""
MOODi CLI

Two commands:

1) serve
   - Run the FastAPI server (routes /ask, /check, /expression, /tts and
     the static widget) with uvicorn.

2) chat
   - Talk to a running server from the terminal. Each line you type is
     one turn; the reply, the chosen expression and a play prompt are
     printed. Inside the chat:
       /new   start a new conversation
       /play  play the last reply's narration
       /quit  leave

The server can also be started directly, e.g.:

    uvicorn runtime.api.server:app --reload
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from configs.settings import settings
from exceptions.exceptions import TurnInProgressError


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


def cmd_serve(host: str, port: int, reload: bool) -> None:
    """Start the MOODi server."""
    import uvicorn

    print(f"[MOODi] Server listening on {host}:{port}")
    uvicorn.run(
        "runtime.api.server:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# ---------------------------------------------------------------------------
# chat
# ---------------------------------------------------------------------------


def cmd_chat(server_url: str, audio: bool) -> None:
    """Interactive terminal chat against a running server."""
    from client.api import MoodiApi
    from client.audio import AudioPlayer, SubprocessAudioBackend
    from client.conversation_client import ConversationClient
    from client.view import TerminalView

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    api = MoodiApi(base_url=server_url)
    player = AudioPlayer(SubprocessAudioBackend(settings.audio_player_command)) if audio else None
    client = ConversationClient(api=api, view=TerminalView(), player=player)

    print(f"[MOODi] Connected to {server_url}. Type /quit to leave.")
    try:
        while True:
            try:
                line = input(">>> ")
            except (EOFError, KeyboardInterrupt):
                print()
                break

            # A new line of input dismisses the previous error banner.
            client.on_input()

            command = line.strip().lower()
            if command == "/quit":
                break
            if command == "/new":
                client.reset()
                continue
            if command == "/play":
                if not client.play():
                    print("[MOODi] No audio for this reply.")
                continue

            try:
                client.submit(line)
            except TurnInProgressError as e:
                print(f"[MOODi] {e}")
    finally:
        if player is not None:
            player.stop()
        api.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moodi",
        description="MOODi chat server and terminal client",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = subparsers.add_parser("serve", help="Run the MOODi HTTP server")
    p_serve.add_argument("--host", default=settings.host, help="Bind address")
    p_serve.add_argument("--port", type=int, default=settings.port, help="Port to listen on")
    p_serve.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (development only)",
    )

    # chat
    p_chat = subparsers.add_parser("chat", help="Chat with a running server from the terminal")
    p_chat.add_argument(
        "--server-url",
        default=settings.server_url,
        help="Base URL of the MOODi server",
    )
    p_chat.add_argument(
        "--no-audio",
        action="store_true",
        help="Do not request or play narration",
    )

    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    command: str = args.command

    if command == "serve":
        cmd_serve(host=args.host, port=args.port, reload=args.reload)
    elif command == "chat":
        cmd_chat(server_url=args.server_url, audio=not args.no_audio)
    else:
        parser.error(f"Unknown command: {command}")


if __name__ == "__main__":
    main()
