"""Core scan parsing and resolution."""
