"""
Clinic Pricing Package

Dynamic price resolution for billable codes in a multi-clinic billing system.
Resolves unit prices using Clinic Override → Organization Default → Suggested
Estimate with a time-bounded cache.
"""

__version__ = "1.0.0"
