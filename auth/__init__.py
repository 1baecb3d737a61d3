"""auth/ -- Credential and token engine for the SSO auth service.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/ or core/. api/ wires auth/ together with
settings from core/, not the other way around.
"""
