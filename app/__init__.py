"""
App Package - Configuration and Errors
"""
