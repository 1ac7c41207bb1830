"""License auditor - Node and Python dependency license compliance."""

__version__ = "0.1.0"
