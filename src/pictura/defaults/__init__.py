"""Bundled default configuration and templates."""
