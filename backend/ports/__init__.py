"""Abstract interfaces (ports) the use cases depend on."""
