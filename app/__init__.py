# 📄 File: app/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Tells Python this 'app' folder holds the code for both services: the user account service
# and the product catalog service.
#
# 🧪 Purpose (Technical Summary):
# Package initialization with version metadata. The two ASGI applications live in app.main.
#
# 🔗 Dependencies:
# - Python packaging system
#
# 🔄 Connected Modules / Calls From:
# - main.py (application entry points)
# - Package imports throughout the application

"""
Catalog Platform - user/identity service and product catalog service.
"""

__version__ = "1.0.0"
__title__ = "Catalog Platform"
__description__ = "User and product microservices with cross-service consistency"
