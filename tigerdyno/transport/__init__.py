"""Chat platform transports."""
