"""
Planning Kernel

Goal planning for loan officers with:
- Income goal to production funnel decomposition
- One active business plan per producer and year
- Manager-approved single-field revisions
- Full auditability via hash chain
"""

__version__ = "0.1.0"
