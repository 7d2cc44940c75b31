"""Outbound delivery of human-readable attendance reports."""

import httpx

from ..utils.logger import setup_logger

logger = setup_logger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"


class ConsoleNotifier:
    """Writes reports to the application log when no channel is configured."""

    def send(self, message: str) -> bool:
        logger.info("Report: %s", message)
        return True

    def close(self) -> None:
        pass


class DiscordNotifier:
    """Posts reports to a Discord channel through the bot API.

    Args:
        bot_token: Discord bot token.
        channel_id: Target channel id.
        client: Optional preconfigured ``httpx.Client``.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        bot_token: str,
        channel_id: str,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.channel_id = channel_id
        self._client = client or httpx.Client(base_url=DISCORD_API_BASE, timeout=timeout)
        self._headers = {"Authorization": f"Bot {bot_token}"}

    def send(self, message: str) -> bool:
        """Send a message to the channel.

        Returns:
            True if Discord accepted the message, False otherwise.
        """
        try:
            response = self._client.post(
                f"/channels/{self.channel_id}/messages",
                headers=self._headers,
                json={"content": message},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Discord notification failed: %s", e)
            return False
        logger.info("Notification sent to channel %s", self.channel_id)
        return True

    def close(self) -> None:
        self._client.close()


def build_notifier(settings, config: dict) -> ConsoleNotifier | DiscordNotifier:
    """Pick the Discord notifier when credentials are set, else the console one."""
    if config.get("notifier", {}).get("enabled", True) and settings.notifier_configured:
        return DiscordNotifier(settings.discord_bot_token, settings.discord_channel_id)
    logger.warning("Discord notification not configured, reports go to the log")
    return ConsoleNotifier()
