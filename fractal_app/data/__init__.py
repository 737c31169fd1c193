"""
Data models module.

Immutable instrument descriptors, candidate maps and match results shared by
the metrics and matching packages.
"""
