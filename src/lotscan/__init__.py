"""Barcode and GS1 scan parsing and inventory resolution."""

__version__ = "0.1.0"
