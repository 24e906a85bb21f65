import logging
import threading

import requests
from discord import Embed, Color

from .models import utcnow

logger = logging.getLogger(__name__)

FOOTER = "Plexgauge"

def truncate_field_value(value, max_length=1024):
    """Truncate a value to a Discord embed limit (1024 for field values)."""
    if value is None:
        return ""
    value = str(value)
    if len(value) <= max_length:
        return value
    return value[:max_length-3] + "..."

def failure_embed(error):
    embed = Embed(
        title="⚠️ Refresh Failed",
        description=f"```\n{truncate_field_value(error, 1000)}\n```",
        color=Color.red(),
        timestamp=utcnow()
    )
    embed.set_footer(text=FOOTER)
    return embed

def summary_embed(stats):
    embed = Embed(
        title="📊 Plex Media Refresh Summary",
        description=f"**Refresh Complete**\nTracking **{stats.total}** media items",
        color=Color.blue(),
        timestamp=utcnow()
    )
    embed.add_field(name="➕ Added", value=str(stats.added), inline=True)
    embed.add_field(name="✏️ Updated", value=str(stats.updated), inline=True)
    embed.add_field(name="➖ Removed", value=str(stats.removed), inline=True)
    if stats.skipped_sections:
        embed.add_field(
            name="⏭️ Unchanged Libraries",
            value=truncate_field_value(", ".join(stats.skipped_sections)),
            inline=False
        )
    embed.set_footer(text=f"{FOOTER} • Run Time: {stats.get_run_time()}")
    return embed

def send_discord_webhook_sync(webhook_url, embed, config):
    """Post one embed to a Discord webhook. Returns False on failure."""
    if not webhook_url or not str(webhook_url).startswith("http"):
        return False

    payload = {"embeds": [embed.to_dict()]}
    username = config.get('DISCORD_WEBHOOK_NAME')
    if username:
        payload["username"] = username

    try:
        response = requests.post(str(webhook_url).strip(), json=payload, timeout=10)
        response.raise_for_status()
        return True
    except requests.RequestException as e:
        logger.error(f"Failed to send webhook: {e}")
        return False

def notifications_enabled(config):
    return bool(config.get('NOTIFICATIONS_ENABLED') and config.get('DISCORD_WEBHOOK_URL'))

def send_discord_embed(config, embed):
    """Send an embed on a background thread so refresh cycles never wait on Discord."""
    if not notifications_enabled(config):
        return None

    def _send():
        send_discord_webhook_sync(config['DISCORD_WEBHOOK_URL'], embed, config)

    thread = threading.Thread(target=_send, daemon=True)
    thread.start()
    return thread

def notify_refresh_failure(config, error):
    if not notifications_enabled(config):
        return None
    return send_discord_embed(config, failure_embed(error))

def notify_refresh_summary(config, stats):
    if not notifications_enabled(config) or not stats.changed:
        return None
    return send_discord_embed(config, summary_embed(stats))
