"""axtrace - map accessibility UI elements to the source lines that created them."""

__version__ = "0.1.0"
