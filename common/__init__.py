"""
Shared types, errors, configuration and logging.
"""
