"""Livefeed: real-time post feed with durable JSON storage and WebSocket fan-out.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
