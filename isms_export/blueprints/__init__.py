"""
ISMS Status Export
Blueprint registry.
"""
