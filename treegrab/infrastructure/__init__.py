"""
Infrastructure: logging and error handling.
"""
