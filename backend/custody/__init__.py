"""Custody — request, approve, reject and return physical items.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
