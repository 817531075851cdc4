"""acadrag: retrieval and quiz generation for course documents."""

__version__ = "0.1.0"
