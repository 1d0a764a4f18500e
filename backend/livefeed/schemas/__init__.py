"""Pydantic Schemas: the Post record and inbound submission shapes.

Invariants:
    - Schemas validate at system boundaries (form fields, socket events, feed file)
"""
