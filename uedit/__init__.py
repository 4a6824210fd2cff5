"""Core of a small MicroEMACS-style text editor: buffers, regions, macros, keys and locks."""

__version__ = "4.0.0"