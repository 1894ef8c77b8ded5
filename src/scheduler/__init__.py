"""Scheduler module for periodic background tasks.

Schedule overview:
  - every `promotion_check_interval_seconds` (default 60s) - reconcile
    promotion active flags against their start/end windows
"""
