"""Main entry point for Rollout Agent."""

import asyncio
import sys

from pydantic import ValidationError

from .agent import RolloutAgent, exit_code
from .config import AgentConfig
from .errors import ConfigurationError
from .utils.logging import setup_logging


def main():
    """Main entry point."""
    # Load configuration
    try:
        config = AgentConfig()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    # Setup logging
    setup_logging(config.log_level, config.log_format)

    try:
        agent = RolloutAgent(config)
    except ConfigurationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        result = asyncio.run(agent.start())
    except KeyboardInterrupt:
        print("\nRollout interrupted by user", file=sys.stderr)
        sys.exit(130)

    if not result.succeeded:
        print(f"Rollout failed: {result.summary()}", file=sys.stderr)
    sys.exit(exit_code(result))


if __name__ == "__main__":
    main()
