"""
Applications module - NCLEX applications, payments, timeline and processing accounts.
"""
