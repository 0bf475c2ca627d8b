#!/usr/bin/env python3
"""
Entry point script to run the chat API.

This script should be run from the project root directory:
    python run.py

Environment variables are documented in application/server.py.
"""
import asyncio

from hypercorn.asyncio import serve

if __name__ == "__main__":
    from application.app import app
    from application.server import build_hypercorn_config

    asyncio.run(serve(app, build_hypercorn_config()))
