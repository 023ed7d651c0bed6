"""Whereabouts domain values, enums, errors and invariants.

Nothing in this package performs I/O.
"""
