"""
API Package - Flask Application
"""
