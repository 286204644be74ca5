"""
Product catalog domain layer.
"""
