"""Bundled default templates."""
