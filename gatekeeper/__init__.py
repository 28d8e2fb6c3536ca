"""Gatekeeper authorization engine."""
