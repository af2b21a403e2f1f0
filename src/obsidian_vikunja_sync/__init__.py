"""Two-way synchronization between Obsidian task notes and Vikunja."""

__version__ = "0.1.0"
