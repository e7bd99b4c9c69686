"""Notifier implementations."""

from .base import NotificationError, Notifier
from .slack_webhook import SlackWebhookNotifier, render_batch_text

__all__ = ["NotificationError", "Notifier", "SlackWebhookNotifier", "render_batch_text"]
