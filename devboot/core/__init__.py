"""Core layer — models, configuration, observability and services."""
