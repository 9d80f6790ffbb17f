"""
Domain layer containing core business logic and domain services.

Submodules:
- live: Live streaming lifecycle (create, reschedule, goals, tip menus, join).
- call: Video call room access checks.
- utils: Domain-specific utilities (channel names, time conversion).
"""
