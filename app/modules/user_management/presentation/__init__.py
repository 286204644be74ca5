"""
User management presentation layer (FastAPI routers, schemas and dependency wiring).
"""
