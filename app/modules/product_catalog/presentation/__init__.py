"""
Product catalog presentation layer (FastAPI router, schemas and dependency wiring).
"""
