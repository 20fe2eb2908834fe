"""
API Package
One blueprint per resource, registered under /api/<name> by the app factory
"""
