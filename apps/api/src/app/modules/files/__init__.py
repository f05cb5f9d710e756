"""
Files module - upload storage and authenticated file serving.
"""
