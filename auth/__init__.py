"""auth/ -- Accounts, credentials, tokens and tenant scoping for Exam Adda.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or institutes/.
api/ and institutes/ import from auth/, not the other way around.
"""
