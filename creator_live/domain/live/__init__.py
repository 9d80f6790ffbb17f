"""
Live streaming domain logic.

Includes:
- stream: Live stream lifecycle, goals, tipping menus and join payloads.
"""
