"""
Boundary layer for external system integrations.

Handles all interactions with external systems (database, LLM backend,
web APIs, settings file).
"""
