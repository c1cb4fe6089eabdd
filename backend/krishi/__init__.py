"""Krishi Mitra farmer assistant API."""
__version__ = "1.0.0"
