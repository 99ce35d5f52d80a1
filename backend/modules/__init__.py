"""
Feature modules for the Tradepost backend.

Each module is self-contained with its own:
- interfaces.py: Protocol definitions for the module's public API
- models.py: Pydantic models for data transfer
- service.py: Implementation on Supabase
- exceptions.py: Module-specific exceptions

Modules communicate through interfaces, not concrete implementations:
- store: generic document collections
- identity: Supabase Auth forwarding
- session: identity/profile reconciliation (depends on store and identity)
"""
