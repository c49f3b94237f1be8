"""State/store layer.

This package is the single source of truth for how delivered feed frames are
merged into the live snapshot.
"""
