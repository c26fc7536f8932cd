"""Enigma2 bouquet catalog addon."""

__version__ = "0.1.0"
