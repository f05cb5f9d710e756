"""
Dashboard module - stats, admin settings and the settings store.
"""
