"""Authentication and authorization.

Learn: Users log in with email/password and receive a signed JWT that
carries their id and role. Every protected request presents it as
`Authorization: Bearer <token>`; a dependency verifies it and a role gate
checks the role. Nothing about the session is stored server-side.
"""
