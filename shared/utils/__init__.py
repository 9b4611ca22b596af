"""
Utilities: HTTP exceptions with auto-logging.
"""
