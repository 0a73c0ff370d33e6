#!/usr/bin/env python3
"""
CLI tool to start the Meetboard FastAPI web server.

Usage:
    python3 web_server.py                    # Start with defaults
    python3 web_server.py --host 0.0.0.0     # Listen on all interfaces
    python3 web_server.py --port 8080        # Use custom port
    python3 web_server.py --reload           # Enable auto-reload for development
    python3 web_server.py --migrate          # Apply database migrations first

Environment Variables:
    MEETBOARD_DB_URL: Database URL (default: SQLite file in the working directory)
    MEETBOARD_ENV: Environment (production/development, default: development)
    MEETBOARD_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
    EVENTS_REQUIRE_APPROVAL: Hold regular submissions for moderation (default: true)
"""

import argparse
import sys
from pathlib import Path

import uvicorn
from alembic import command
from alembic.config import Config
from dotenv import load_dotenv


REPO_ROOT = Path(__file__).parent


def parse_arguments(argv=None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Arguments:
        --host: Host to bind (default: 127.0.0.1)
        --port: Port to bind (default: 8000)
        --reload: Enable auto-reload for development (default: False)
        --migrate: Upgrade the database schema before serving (default: False)
    """
    parser = argparse.ArgumentParser(
        description="Start the Meetboard FastAPI web server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start development server with auto-reload
  python3 web_server.py --reload

  # First run against a new database
  python3 web_server.py --migrate --host 0.0.0.0
        """
    )

    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind the server to (default: 127.0.0.1). "
             "Use 0.0.0.0 to listen on all interfaces."
    )

    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind the server to (default: 8000)"
    )

    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart automatically when code changes. Not for production."
    )

    parser.add_argument(
        "--migrate",
        action="store_true",
        help="Run 'alembic upgrade head' before starting the server"
    )

    return parser.parse_args(argv)


def run_migrations() -> None:
    """Upgrade the database configured by MEETBOARD_DB_URL to the latest revision."""
    config = Config(str(REPO_ROOT / "backend" / "alembic.ini"))
    config.set_main_option("script_location", str(REPO_ROOT / "backend" / "src" / "db" / "migrations"))
    command.upgrade(config, "head")


def main(argv=None) -> None:
    """
    Main entry point for the web server CLI tool.

    Exit Codes:
        0: Server stopped normally
    """
    args = parse_arguments(argv)

    # "backend.src.main" must be importable when run from anywhere
    repo_root = str(REPO_ROOT)
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)

    # Explicit environment variables win over backend/.env
    load_dotenv(dotenv_path=REPO_ROOT / "backend" / ".env", override=False)

    if args.migrate:
        print("Applying database migrations...")
        run_migrations()

    print(f"\nStarting Meetboard web server...")
    print(f"Host: {args.host}")
    print(f"Port: {args.port}")
    print(f"Auto-reload: {'enabled' if args.reload else 'disabled'}")
    print(f"\nAPI documentation: http://{args.host}:{args.port}/docs")
    print(f"Health check: http://{args.host}:{args.port}/health")
    print("\nPress CTRL+C to stop the server\n")

    try:
        uvicorn.run(
            "backend.src.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level="info",
        )
    except KeyboardInterrupt:
        print("\n\nServer stopped by user (CTRL+C)")
        sys.exit(0)


if __name__ == "__main__":
    main()
