"""
Timesheet Kernel

Submission and approval state machine for custom-week timesheets:
- Chronological submission ordering per user
- Completeness gating against percentage-adjusted required hours
- Forward-inherited work percentages
- Manager and user-head approval, admin override
- Idempotent upserts at the persistence boundary
"""

__version__ = "0.1.0"
