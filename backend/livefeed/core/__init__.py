"""Core Layer: feed rules, types, and errors. No IO, no async, no web framework.

Invariants:
    - No module in core/ imports from services/, api/, or infrastructure/
    - Feed operations take and return immutable tuples
"""
