"""Websocket transport for change events."""
