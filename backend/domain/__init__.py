"""Framework-agnostic domain models and errors."""
