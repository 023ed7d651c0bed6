"""Whereabouts engine - pure rules for filing a quarter.

This module provides:
- Slot validation (the single definition of a "complete" day)
- Weekly pattern editing and statistics
- Pattern application to a quarter and extraction back from it
- Completion tracking and the quarter status lifecycle
- Reusable templates

No function here reads the clock or touches the database; callers pass
"today", locations and existing slots in explicitly.
"""
