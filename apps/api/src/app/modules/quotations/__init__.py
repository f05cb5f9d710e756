"""
Quotations module - public and client quote requests.
"""
