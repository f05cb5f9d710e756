"""Notifications module - in-app notifications with email copies."""
