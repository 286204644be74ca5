# 📄 File: app/api/__init__.py
# 🧭 Purpose (Layman Explanation):
# Marks the api folder as a package holding the pieces both services share at the web layer:
# error handling, request logging and the health check.
# 🧪 Purpose (Technical Summary):
# Package initialization for the shared HTTP layer (middleware and the /health router).
# 🔗 Dependencies:
# None (package initialization)
# 🔄 Connected Modules / Calls From:
# app.main

API_PREFIX = "/api"

__all__ = ["API_PREFIX"]
