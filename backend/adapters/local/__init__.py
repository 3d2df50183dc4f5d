"""Local infrastructure adapters."""
