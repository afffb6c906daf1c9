"""Pharmacy point-of-sale service"""

__version__ = "1.0.0"
