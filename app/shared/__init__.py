# 📄 File: app/shared/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Marks the 'shared' folder as a package of common tools both services use, like settings,
# security checks, database sessions and the event channel.
#
# 🧪 Purpose (Technical Summary):
# Shared kernel package for configuration, errors, security, persistence, HTTP clients,
# integration events and logging.
#
# 🔗 Dependencies:
# - Python packaging system
#
# 🔄 Connected Modules / Calls From:
# - Both service modules and app.main

__all__ = []
