"""Shared utilities: HTTP transport and logging setup."""
