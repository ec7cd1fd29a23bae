"""
Sehat Safe prescription scanning service
"""
__version__ = "1.0.0"
