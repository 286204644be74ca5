"""
Product catalog infrastructure: SQLAlchemy persistence and the user service client.
"""
