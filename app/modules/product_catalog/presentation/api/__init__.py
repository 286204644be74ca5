"""
Product service HTTP API.
"""
