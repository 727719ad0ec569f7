"""Notes and question answering over academic PDF papers."""

__version__ = "1.0.0"
