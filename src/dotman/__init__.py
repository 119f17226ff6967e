"""dotman: mirror named configuration directories into a central store."""

__version__ = "0.3.0"
