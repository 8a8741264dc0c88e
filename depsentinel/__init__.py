"""depsentinel: dependency vulnerability scanner backed by OSV.dev."""

__version__ = "0.1.0"
