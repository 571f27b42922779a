"""
Booking engine - validation, sessions, fulfillment, messages and orchestration.

Modules are imported directly (``from engine.orchestrator import ...``);
``flows`` depends on ``engine.errors``, so this package does not re-export.
"""
