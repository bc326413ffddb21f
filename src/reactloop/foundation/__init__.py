"""Shared infrastructure: logging setup."""
