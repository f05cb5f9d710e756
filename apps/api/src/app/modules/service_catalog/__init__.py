"""
Service catalogue module - priced NCLEX processing offerings per state.
"""
