"""Telegram notifications for agency events.

Posts Markdown messages to a chat through the Telegram Bot API. The bot
token and chat id come from the tool's config (``telegram`` section) or
the TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID environment variables.

Usage:
    from shared.telegram_notifier import notify_client_action
"""

from __future__ import annotations

import re
from datetime import datetime
from zoneinfo import ZoneInfo

import requests

from shared.config_store import get_config_value, get_secret

API_URL = "https://api.telegram.org/bot{token}/sendMessage"
TIMEOUT_SECONDS = 10
LOCAL_TZ = ZoneInfo("America/Sao_Paulo")


def load_telegram_config(tool_name: str) -> dict:
    """Return {"bot_token", "chat_id", "enabled"} for *tool_name*."""
    section = get_config_value(tool_name, "telegram", {}) or {}
    return {
        "bot_token": get_secret(tool_name, "telegram", "bot_token", "TELEGRAM_BOT_TOKEN"),
        "chat_id": get_secret(tool_name, "telegram", "chat_id", "TELEGRAM_CHAT_ID"),
        "enabled": bool(section.get("enabled", True)),
    }


_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


def escape_markdown(text: str) -> str:
    """Escape the characters Telegram's legacy Markdown treats as markup."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", str(text))


def format_client_message(
    client_name: str,
    action: str,
    title: str,
    details: str = "",
) -> str:
    """Build the standard client-action message body.

    *details* is sent as-is so callers can add their own markup.
    """
    lines = [
        f"*CLIENT: {escape_markdown(client_name)}*",
        f"Action: {escape_markdown(action)}",
        f"Item: {escape_markdown(title)}",
    ]
    if details:
        lines.append(f"Details: {details}")
    return "\n".join(lines)


def send_message(
    bot_token: str,
    chat_id: str,
    message: str,
    session: requests.Session | None = None,
) -> dict:
    """Send *message* to *chat_id*, stamped with local date/time.

    Returns:
        dict with "success" (bool) and "result" or "error" keys.
    """
    if not bot_token or not chat_id or not message:
        return {"success": False, "error": "Missing bot token, chat id, or message."}

    stamp = datetime.now(LOCAL_TZ).strftime("%d/%m/%Y %H:%M:%S")
    http = session or requests
    try:
        resp = http.post(
            API_URL.format(token=bot_token),
            json={
                "chat_id": chat_id,
                "text": f"{message}\nLocal time: {stamp}",
                "parse_mode": "Markdown",
            },
            timeout=TIMEOUT_SECONDS,
        )
        result = resp.json()
    except (requests.RequestException, ValueError) as e:
        return {"success": False, "error": str(e)}

    if not resp.ok or not result.get("ok", False):
        return {
            "success": False,
            "error": result.get("description") or "Failed to send message to Telegram.",
        }
    return {"success": True, "result": result}


def notify_client_action(
    tool_name: str,
    client_name: str,
    action: str,
    title: str,
    details: str = "",
    session: requests.Session | None = None,
) -> dict:
    """Send a client-action notification using *tool_name*'s Telegram config.

    Skipped (success False, "skipped" True) when notifications are disabled
    or not configured.
    """
    config = load_telegram_config(tool_name)
    if not config["enabled"] or not config["bot_token"] or not config["chat_id"]:
        return {"success": False, "skipped": True, "error": "Telegram notifications are not configured."}
    message = format_client_message(client_name, action, title, details)
    return send_message(config["bot_token"], config["chat_id"], message, session=session)
