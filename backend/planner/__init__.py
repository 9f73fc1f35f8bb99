"""Room/level allocation and movement-reconciliation engine.

Public operations never mutate caller-owned inputs, and the same inputs
always produce the same result.
"""
