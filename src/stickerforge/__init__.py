"""Sticker design geometry: cutlines, pricing and sheet nesting."""

__version__ = "0.1.0"
