#!/usr/bin/env python3
"""
SafeIntel API - Entry Point

Loads .env, prepares runtime directories and starts the Flask server
on the first free port.
"""

import os
import socket


def ensure_directories():
    from safeintel.paths import ensure_dirs_exist
    ensure_dirs_exist()
    print("Runtime directories initialized")


def load_environment():
    from dotenv import load_dotenv
    from safeintel.paths import get_env_file

    env_file = get_env_file()
    if env_file:
        load_dotenv(env_file)
        print(f"Loaded configuration from {env_file}")
    else:
        print("No .env file found, using environment defaults")


def _is_port_free(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.settimeout(0.2)
        return s.connect_ex((host, port)) != 0


def choose_port(host: str, preferred: int) -> int:
    if _is_port_free(host, preferred):
        return preferred

    for p in (5050, 5001, 8000, 8080, 8888):
        if _is_port_free(host, p):
            return p

    # let the OS pick
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((host, 0))
        return s.getsockname()[1]


def main():
    load_environment()
    ensure_directories()

    host = os.environ.get("HOST", "127.0.0.1")
    port = choose_port(host, int(os.environ.get("PORT", "5050")))
    os.environ["HOST"] = host
    os.environ["PORT"] = str(port)

    # env must be loaded before the app (and its config) is imported
    from app import app

    print("=" * 60)
    print("  SafeIntel API")
    print("=" * 60)
    print(f"\n  Serving at http://{host}:{port}/api")
    print("  Press Ctrl+C to stop the server\n")
    print("=" * 60)

    app.run(host=host, port=port, debug=False, use_reloader=False)


if __name__ == "__main__":
    main()
