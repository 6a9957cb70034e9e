"""auth/ -- Users, sessions, and the sign-up / sign-in / logout flows for SessionGate.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
