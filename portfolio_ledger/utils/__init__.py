"""
Utility Functions

Validation helpers for amounts and symbols.
"""
