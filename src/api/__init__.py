"""
HTTP API

Flask application exposing GEX profiles and IV history as JSON.
"""

from .gex_api import create_app

__all__ = ['create_app']
