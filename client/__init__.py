"""client/ -- Python client for the portfolio REST API.

Layer rule: client/ talks to the server over HTTP only. It imports nothing
from api/, auth/, content/ or core/, so it can ship on its own.
"""
