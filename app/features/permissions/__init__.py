"""
Permission catalog feature module.

Permissions are named capabilities grouped under modules and bundled into
roles; a user's effective set is resolved in app.features.access.
"""
