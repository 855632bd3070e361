"""Pictura - content pipeline for a personal site with responsive images."""

__version__ = "0.3.0"
