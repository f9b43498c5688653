"""Travel atlas backend: place search proxy and AI travel recommendations."""

__version__ = "1.0.0"
