# 📄 File: app/modules/user_management/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# The user service: sign-up, login, email confirmation, password reset, and managing accounts.
#
# 🧪 Purpose (Technical Summary):
# User/identity bounded context: domain model, services, SQLAlchemy persistence, SMTP email,
# integration event publishing and the /api/auth and /api/users routers.
#
# 🔗 Dependencies:
# - app.shared (config, security, events, database)
#
# 🔄 Connected Modules / Calls From:
# - app.main (user service factory)
