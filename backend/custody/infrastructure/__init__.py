"""Infrastructure Layer — implementations of the core boundary protocols.

Invariants:
    - Infrastructure never contains lifecycle rules (those live in core/)
    - All SQLAlchemy errors mapped to DatabaseError at the session boundary
"""
