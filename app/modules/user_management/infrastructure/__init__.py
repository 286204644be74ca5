"""
User management infrastructure: SQLAlchemy persistence and SMTP email.
"""
