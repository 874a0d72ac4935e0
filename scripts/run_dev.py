#!/usr/bin/env python3
"""
Development server launcher for the SafeIntel API.

Usage:
    python scripts/run_dev.py

Features:
    - Auto-reload on code changes
    - Debug mode enabled
"""

import os
import sys

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)
os.chdir(project_root)

from dotenv import load_dotenv

load_dotenv(os.path.join(project_root, '.env'))

os.environ.setdefault('APP_ENV', 'dev')
os.environ.setdefault('FLASK_ENV', 'development')


def main():
    """Main entry point for development server."""
    host = os.environ.get('HOST', '127.0.0.1')
    port = int(os.environ.get('PORT', 5000))

    print("=" * 60)
    print("  SafeIntel API - DEVELOPMENT MODE")
    print("=" * 60)
    print(f"\n  Server: http://{host}:{port}")
    print("  Debug: ON")
    print("  Auto-reload: ON")
    print("\n  Press Ctrl+C to stop the server")
    print("=" * 60)

    from app import app

    app.run(host=host, port=port, debug=True, use_reloader=True)


if __name__ == '__main__':
    main()
