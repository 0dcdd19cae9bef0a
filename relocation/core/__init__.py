"""Core domain: models, errors, storage interfaces and capability policy."""
