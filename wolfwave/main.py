#!/usr/bin/env python3
"""
Main entry point for the WolfWave Twitch bot
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .application_context import ApplicationContext
from .auth_token.types import DeviceCodeState
from .bootstrap import BootstrapOutcome
from .config.core import resolve_client_id, settings_path
from .config.repository import SettingsRepository
from .errors.handling import log_error
from .errors.internal import InternalError
from .logging_config import LoggerConfigurator
from .utils import emit_startup_instructions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wolfwave", description="Twitch chat bot answering now-playing commands"
    )
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Check configuration and exit with status 0 or 1",
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("run", help="Start the bot and auto-join the saved channel (default)")
    sub.add_parser("authorize", help="Sign the bot account in with a device code")
    join = sub.add_parser("join", help="Save a channel to join on startup, then run")
    join.add_argument("channel", help="Twitch channel login")
    sub.add_parser("leave", help="Forget the saved channel")
    sub.add_parser("logout", help="Remove all stored Twitch credentials")
    toggle = sub.add_parser("commands", help="Enable or disable chat commands")
    toggle.add_argument("state", choices=("on", "off"))
    return parser


def health_check() -> int:
    """Return 0 when settings load and a Client ID is configured, else 1."""
    logging.info("🏥 Health check mode")
    try:
        settings = SettingsRepository(settings_path()).load()
    except (OSError, ValueError) as e:
        logging.error(f"❌ Health check failed: {e}")
        return 1
    if not resolve_client_id():
        logging.error("❌ Health check failed: TWITCH_CLIENT_ID is not set")
        return 1
    logging.info(
        f"✅ Health check passed commands_enabled={settings.commands_enabled} reauth_needed={settings.reauth_needed}"
    )
    return 0


async def authorize(ctx: ApplicationContext) -> int:
    """Run one device authorization attempt from the terminal."""

    def show_code(state: DeviceCodeState) -> None:
        print(f"🔗 Open {state.verification_uri} and enter code: {state.user_code}")

    def show_status(message: str) -> None:
        print(f"⏳ {message}")

    if ctx.authorizer is None:
        raise RuntimeError("ApplicationContext.create() has not run")
    task = await ctx.authorizer.start(show_code, show_status)
    try:
        await task
    except InternalError:
        return 1
    return 0


async def run_bot(ctx: ApplicationContext) -> int:
    """Run the startup sequence and keep the chat connection alive."""
    outcome = await ctx.bootstrap_sequencer().run()
    logging.info(f"🚦 Startup finished outcome={outcome.value}")
    if outcome in (BootstrapOutcome.NO_TOKEN, BootstrapOutcome.REAUTH_REQUIRED):
        print("👉 Run `wolfwave authorize` to sign the bot in")
    await asyncio.Event().wait()
    return 0


async def main(argv: list[str] | None = None) -> int:
    """Dispatch the selected sub-command.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)
    command = args.command or "run"
    ctx = await ApplicationContext.create()
    try:
        if command == "authorize":
            return await authorize(ctx)
        if command == "leave":
            ctx.credentials.delete_twitch_channel_id()
            print("👋 Saved channel removed")
            return 0
        if command == "logout":
            ctx.credentials.clear_twitch_credentials()
            ctx.settings.try_update(reauth_needed=False)
            return 0
        if command == "commands":
            if ctx.chat is None:
                raise RuntimeError("ApplicationContext.create() has not run")
            ctx.chat.commands_enabled = args.state == "on"
            return 0
        if command == "join":
            channel = args.channel.strip().lstrip("#").lower()
            ctx.credentials.save_twitch_channel_id(channel)
            logging.info(f"💾 Saved channel={channel}")
        emit_startup_instructions()
        return await run_bot(ctx)
    finally:
        await ctx.shutdown()


def run() -> None:
    """Synchronous entry point for the application.

    Raises:
        SystemExit: With the exit status of the selected command.
    """
    LoggerConfigurator().configure()
    if "--health-check" in sys.argv[1:]:
        sys.exit(health_check())
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logging.info("⌨️ Interrupted by user")
        sys.exit(0)
    except asyncio.CancelledError:
        sys.exit(0)
    except InternalError as e:
        log_error("Top-level error", e)
        sys.exit(1)


if __name__ == "__main__":
    run()
