"""
Notestore

Async data access for notes over interchangeable database backends.
"""
