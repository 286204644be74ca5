"""
Product catalog application layer (event consumers).
"""
