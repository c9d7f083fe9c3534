"""anonreg — commit-reveal registration into the Anonymous Identity Registry."""

__version__ = "0.1.0"
