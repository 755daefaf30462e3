"""
Discord Delivery

Posts digest messages to a Discord incoming webhook as ``{"content": ...}``.
Messages over Discord's content limit are split on blank lines so page blocks
stay intact.
"""

from __future__ import annotations

from collections.abc import Sequence

import requests

from pagefeed.config import HTTP_TIMEOUT_SECONDS, get_discord_webhook_url
from pagefeed.observability.logging import get_logger
from pagefeed.observability.telemetry import counter

logger = get_logger(__name__)

DISCORD_MAX_CONTENT = 2000


def split_content(message: str, limit: int = DISCORD_MAX_CONTENT) -> list[str]:
    """
    Split a message into chunks of at most `limit` characters.

    Splits between "\\n\\n"-separated blocks; a single block longer than the
    limit is cut hard.
    """
    if len(message) <= limit:
        return [message]

    chunks: list[str] = []
    current = ""
    for block in message.split("\n\n"):
        candidate = f"{current}\n\n{block}" if current else block
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            chunks.append(current)
        while len(block) > limit:
            chunks.append(block[:limit])
            block = block[limit:]
        current = block
    if current:
        chunks.append(current)
    return chunks


class DiscordWebhookTransport:
    """Delivers messages through a Discord webhook URL"""

    def __init__(self, webhook_url: str | None = None, timeout: float = HTTP_TIMEOUT_SECONDS):
        """
        Args:
            webhook_url: Webhook URL (default: DISCORD_WEBHOOK_URL env var)
            timeout: Per-request timeout in seconds
        """
        self.webhook_url = webhook_url or get_discord_webhook_url()
        self.timeout = timeout
        self.enabled = bool(self.webhook_url)

        if not self.enabled:
            logger.warning("Discord webhook URL not configured. Set DISCORD_WEBHOOK_URL.")

    def send(self, messages: Sequence[str]) -> bool:
        """
        Post each message (split to Discord's limit) in order.

        Returns:
            True if every post succeeded, False if skipped or any post failed

        Side Effects:
            - HTTP POST to the webhook URL per chunk
            - Increments delivery.discord.sent / delivery.discord.failed
        """
        for message in messages:
            logger.info("Discord message (%d chars)", len(message))
            logger.debug("Discord message body:\n%s", message)

        webhook_url = self.webhook_url
        if not webhook_url:
            logger.info("Discord webhook URL not configured, skipping actual send")
            return False

        for message in messages:
            for chunk in split_content(message):
                try:
                    response = requests.post(
                        webhook_url,
                        json={"content": chunk},
                        timeout=self.timeout,
                    )
                    response.raise_for_status()
                except requests.RequestException as e:
                    counter("delivery.discord.failed")
                    logger.error("Failed to post to Discord: %s", e)
                    return False

                counter("delivery.discord.sent")

        logger.info("Delivered %d message(s) to Discord", len(messages))
        return True
