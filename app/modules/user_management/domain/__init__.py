"""
User management domain layer: the User model, repository contract, services and events.
"""
