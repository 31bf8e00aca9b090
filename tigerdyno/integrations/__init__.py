"""Integrations with services outside the chat platform."""
