#!/usr/bin/env python3
"""
Production server launcher for the SafeIntel API.

Usage:
    python scripts/run_prod.py

Features:
    - Uses Waitress WSGI server
    - No debug mode
    - Warns when no LLM backend is configured
"""

import os
import sys

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)
os.chdir(project_root)

from dotenv import load_dotenv

load_dotenv(os.path.join(project_root, '.env'))

os.environ['APP_ENV'] = 'prod'
os.environ['FLASK_ENV'] = 'production'


def validate_config():
    """Warn about configuration that degrades every pipeline run."""
    has_llm = (
        os.environ.get('CLASSIFIER_URL')
        or os.environ.get('OPENAI_API_KEY')
        or os.environ.get('AI_INTEGRATIONS_OPENAI_API_KEY')
    )
    if not has_llm:
        print("\n  WARNING: no classifier configured (CLASSIFIER_URL or OPENAI_API_KEY).")
        print("  Every run will fall back to raw reports.\n")


def main():
    """Main entry point for production server."""
    validate_config()

    from safeintel.paths import ensure_dirs_exist
    ensure_dirs_exist()

    host = os.environ.get('HOST', '127.0.0.1')
    port = int(os.environ.get('PORT', 5000))
    threads = int(os.environ.get('WAITRESS_THREADS', 8))

    print("=" * 60)
    print("  SafeIntel API - PRODUCTION MODE")
    print("=" * 60)
    print(f"\n  Server: http://{host}:{port}")
    print(f"  WSGI: Waitress ({threads} threads)")
    print("  Debug: OFF")
    print("\n  Press Ctrl+C to stop the server")
    print("=" * 60)

    from waitress import serve
    from app import app

    serve(app, host=host, port=port, threads=threads)


if __name__ == '__main__':
    main()
