# 📄 File: app/shared/infrastructure/external_apis/__init__.py
# 🧭 Purpose (Layman Explanation):
# Collects the tools one service uses to call another over HTTP.
# 🧪 Purpose (Technical Summary):
# Exports the aiohttp-based APIClient and its response type.
# 🔗 Dependencies:
# - api_client (aiohttp, tenacity)
# 🔄 Connected Modules / Calls From:
# Used by: product_catalog user service client

from .api_client import APIClient, APIResponse

__all__ = ["APIClient", "APIResponse"]
