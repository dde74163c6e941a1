"""Diagnostics with labelled source spans and cause chains, rendered graphically, as narrated text, as JSON or as a field dump."""

__version__ = "0.1.0"