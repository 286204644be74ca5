# 📄 File: app/modules/product_catalog/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# The product service: people add, browse, edit and remove products, and products follow
# their owner's account (hidden when the owner is deactivated or deleted).
#
# 🧪 Purpose (Technical Summary):
# Product catalog bounded context: Product model, ownership-guarded repository, user status
# oracle, consistency coordinator, user lifecycle consumers and the /api/products router.
#
# 🔗 Dependencies:
# - app.shared (config, security, events, database, HTTP client)
#
# 🔄 Connected Modules / Calls From:
# - app.main (product service factory)
