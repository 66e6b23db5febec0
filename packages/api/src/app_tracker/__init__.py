# This project was developed with assistance from AI tools.
"""Application tracker API."""

__version__ = "0.1.0"
