"""Authentication and authorization.

Users sign in with email/password (after verifying their email) and
receive a stateless JWT. Every protected route resolves that token to
an Identity through a single dependency, and all resource queries are
scoped by the identity's user_id.
"""
