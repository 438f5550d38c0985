"""
asgi.py -- ASGI entry point for the portfolio backend.

Servers and the `serve` command import the app from here so the import path
stays stable if api/main.py is ever split up.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import app

__all__ = ["app"]
