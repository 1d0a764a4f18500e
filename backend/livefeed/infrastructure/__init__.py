"""Infrastructure Layer: filesystem persistence and logging setup.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Every OSError is mapped to a FeedError subclass before leaving this layer
"""
