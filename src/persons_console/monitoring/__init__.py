"""Monitoring package for logging, request context and operator notifications."""

from persons_console.monitoring.notifications import NotificationCenter
from persons_console.monitoring.request_context import RequestContextMiddleware

__all__ = [
    "NotificationCenter",
    "RequestContextMiddleware",
]
