# 📄 File: app/shared/config/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Contains the settings that tell both services how to reach their databases,
# the message broker, the mail server and each other.
#
# 🧪 Purpose (Technical Summary):
# Configuration package initialization exporting the settings model and its
# cached factory.
#
# 🔗 Dependencies:
# - settings.py (application settings)
#
# 🔄 Connected Modules / Calls From:
# - app.main (application startup)
# - All modules requiring configuration

"""
Configuration Management Package
"""

from .settings import get_settings, Settings

__all__ = [
    "get_settings",
    "Settings",
]
