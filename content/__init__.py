"""content/ -- Contacts, projects and qualifications.

Layer rule: content/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, auth/ or client/.
"""
