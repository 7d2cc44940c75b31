"""Report delivery channels."""

from .notifier import ConsoleNotifier, DiscordNotifier, build_notifier

__all__ = ["ConsoleNotifier", "DiscordNotifier", "build_notifier"]
