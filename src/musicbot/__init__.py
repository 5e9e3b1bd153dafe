"""Telegram music bot: message routing and track resolution."""

__version__ = "0.4.0"
