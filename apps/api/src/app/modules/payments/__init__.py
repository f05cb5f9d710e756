"""
Payments module - Stripe checkout, payment completion, receipts and webhooks.
"""
