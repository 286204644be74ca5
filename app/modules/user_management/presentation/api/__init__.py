"""
User service HTTP API.
"""
