"""
Core utilities package.
Provides error kinds, security, request dependencies and the circuit breaker.

Import from the submodules directly (app.shared.core.exceptions, .security,
.dependencies, .circuit_breaker).
"""
