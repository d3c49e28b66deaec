"""Notification control — dedup, quiet hours and rate caps before delivery."""

from steward.notifications.channels import DeliveryChannel, LogChannel, TelegramChannel
from steward.notifications.gate import GateFailureNotifier, NotificationGate
from steward.notifications.rate_caps import RateCapTable
from steward.notifications.scheduler import DailyResetScheduler

__all__ = [
    "DailyResetScheduler",
    "DeliveryChannel",
    "GateFailureNotifier",
    "LogChannel",
    "NotificationGate",
    "RateCapTable",
    "TelegramChannel",
]
