"""
Utility functions module.

Timeframe label formatting and parsing shared across the system.

Timeframe Semantics:
- Minutes are the authoritative representation of a timeframe
- Labels are derived for display and never used in arithmetic
- Labels are parsed back to minutes only at the input boundary
"""
