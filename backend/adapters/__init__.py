"""Concrete adapters for the ports."""
