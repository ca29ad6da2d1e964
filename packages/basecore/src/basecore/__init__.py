"""
basecore - shared runtime helpers (settings, logging, database, redis).
"""
