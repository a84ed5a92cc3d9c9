"""
Core modules for Session Timeline.

This package contains the pure session analysis functions: timeline
grouping, all-in EV reconciliation, the profit series and live state.
"""
