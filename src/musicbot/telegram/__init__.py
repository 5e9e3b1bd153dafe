"""Telegram transport: API client, routing, resolution and handlers."""
