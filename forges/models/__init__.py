"""Normalized data models shared by every forge adapter."""

from forges.models.domain import ListOptions, Repository, Tag

__all__ = [
    "ListOptions",
    "Repository",
    "Tag",
]
