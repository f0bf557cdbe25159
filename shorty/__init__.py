"""
shorty - a minimal URL-shortening redirect service.

Short names map to destination URLs; the mapping lives in memory and is
mirrored to a JSON file on every change.
"""

__version__ = "1.0.0"
