"""
Vercel serverless function entry point for the job board.

This file exposes the Flask app as a Vercel serverless function.
Vercel automatically handles the WSGI interface.
"""

from frontend.app import app

# Vercel expects the app to be named 'app' or 'handler'
__all__ = ["app"]
