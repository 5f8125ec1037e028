"""
Access feature module.

Resolves a user's effective permissions from their project role assignments
and gates capabilities by role level or permission membership.
"""
