"""General utility helper functions."""

from __future__ import annotations

from ..constants import CLIENT_ID_ENV

__all__ = ["format_duration", "emit_startup_instructions"]


def format_duration(total_seconds: int | float | None) -> str:
    """Render seconds as ``1h 0m 5s`` / ``1m 5s`` / ``59s``; None is "unknown"."""
    if total_seconds is None:
        return "unknown"
    minutes, seconds = divmod(int(total_seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def emit_startup_instructions() -> None:
    """Print setup guidance for first runs."""
    print("📘 Instructions")
    print(
        "🪜 Setup step 1: Create a Twitch application: https://dev.twitch.tv/console/apps"
    )
    print("🪜 Setup step 2: Enable the Device Code Grant flow for the application")
    print(f"🪜 Setup step 3: Export its Client ID as {CLIENT_ID_ENV}")

    print("⚙️ Authorization")
    print("👉 Run `wolfwave authorize` and enter the displayed code at twitch.tv/activate")
    print("👉 Run `wolfwave join <channel>` once to save the channel to join on startup")

    print("ℹ️ Chat commands")
    print("👉 !song, !currentsong, !nowplaying: current track")
    print("👉 !last, !lastsong, !prevsong: previous track")
