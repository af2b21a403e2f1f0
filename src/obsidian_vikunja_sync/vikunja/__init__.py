"""Vikunja API payload models.

The HTTP client lives in ``obsidian_vikunja_sync.vikunja.client``.
"""

from .models import PARENT_RELATION_KIND, VikunjaLabel, VikunjaReminder, VikunjaTask

__all__ = [
    "PARENT_RELATION_KIND",
    "VikunjaLabel",
    "VikunjaReminder",
    "VikunjaTask",
]
