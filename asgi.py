"""
asgi.py -- Application assembly for the Exam Adda API.

Process managers point here rather than at api/main.py so deployments have a
stable import path regardless of how the api/ package is organized.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import app

__all__ = ["app"]
