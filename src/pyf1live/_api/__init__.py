"""Endpoint modules, one per feed. Internal to pyf1live."""
