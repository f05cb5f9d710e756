"""
Tracking module - public application status lookup.
"""
