"""Relay streamed chat completions from an upstream API to WebSocket clients."""

__version__ = "0.1.0"
