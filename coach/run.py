"""
Run script for starting the Gestalt Coach server.

Usage:
    python -m coach.run [--port PORT] [--host HOST]
"""

import argparse
import os
import sys
from pathlib import Path

import dotenv
import uvicorn

from coach.config.agents import AgentPersona, is_unresolved, load_agent_configs
from coach.config.logging_config import configure_logging

logger = configure_logging()


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Start the Gestalt Coach server")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "8000")),
        help="Port to run the server on (default: 8000 or PORT env var)",
    )
    parser.add_argument(
        "--host",
        default=os.getenv("HOST", "0.0.0.0"),
        help="Host to bind the server to (default: 0.0.0.0 or HOST env var)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO or LOG_LEVEL env var)",
    )
    return parser.parse_args(argv)


def load_env_file(path: Path = Path(".") / ".env") -> bool:
    """Load settings from a .env file without overriding the environment."""
    if not path.exists():
        return False
    dotenv.load_dotenv(path)
    logger.debug(f"Loaded environment from {path}")
    return True


def main(argv=None):
    """Main entry point for starting the server."""
    load_env_file()
    args = parse_args(argv)
    configure_logging(args.log_level)

    if is_unresolved(os.getenv("ELEVENLABS_API_KEY")):
        logger.error("ELEVENLABS_API_KEY environment variable not set")
        print("Error: ELEVENLABS_API_KEY environment variable is required")
        sys.exit(1)

    for persona, config in load_agent_configs().items():
        if is_unresolved(config.agent_id):
            logger.warning(f"No agent id configured for {persona.value}")

    logger.info(f"Starting server on http://{args.host}:{args.port}")
    logger.info(f"Log level: {args.log_level}")
    logger.info(f"Personas: {', '.join(p.value for p in AgentPersona)}")

    uvicorn.run(
        "coach.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        access_log=False,
        reload=os.getenv("ENV", "production").lower() == "development",
    )


if __name__ == "__main__":
    main()
