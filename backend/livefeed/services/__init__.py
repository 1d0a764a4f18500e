"""Service Layer: feed cache, broadcast hub, mutation pipeline, and their wiring.

Invariants:
    - MutationPipeline is the only writer of the record store and the cache
"""
