#!/usr/bin/env python
"""
Run the Campus Portal API server.

Usage:
    python run_api.py
    python run_api.py --reload          # Development mode
    python run_api.py --memory-store    # Profiles kept in process memory
"""

import argparse
import os

import uvicorn

from shared.config import get_settings


def main():
    parser = argparse.ArgumentParser(description="Run Campus Portal API server")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    parser.add_argument("--host", type=str, help="Host to bind to")
    parser.add_argument("--port", type=int, help="Port to bind to")
    parser.add_argument(
        "--memory-store",
        action="store_true",
        help="Keep profiles in memory instead of the Supabase table",
    )
    parser.add_argument("--log-json", action="store_true", help="Emit JSON log lines")
    args = parser.parse_args()

    # Reload workers re-read settings from the environment
    if args.memory_store:
        os.environ["PROFILE_STORE_BACKEND"] = "memory"
    if args.log_json:
        os.environ["LOG_JSON"] = "true"
    get_settings.cache_clear()
    settings = get_settings()

    uvicorn.run(
        "api.app:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload or settings.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
