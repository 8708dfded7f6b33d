"""Transports used for demos and tests."""
