"""
Pydantic schemas shared across layers.
"""
