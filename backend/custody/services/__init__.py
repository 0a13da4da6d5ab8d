"""Services Layer — event bus, ledger, lifecycle service, notification listeners.

Invariants:
    - Services depend on core Protocols, never on concrete infrastructure
    - All wiring happens in bootstrap.py (no auto-discovery)
"""
