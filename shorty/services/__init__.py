"""
Services module for business logic separation.

Holds the RedirectStore, which owns the short name -> destination mapping
and its JSON persistence, independent of the HTTP layer.
"""
