"""
StoryGen Main Entry Point

Run the StoryGen debug console API.
"""

import sys
import argparse
from pathlib import Path

from storygen.core.config import load_config, set_config
from storygen.core.exceptions import ConfigurationError
from storygen.core.logging_config import LogLevel, create_session_log, get_logger, setup_logging
from storygen.core.startup import validate_environment


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="StoryGen - review gate and agent memory console for story-to-video generation"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Path to configuration file (default: config/storygen_config.json)"
    )

    parser.add_argument(
        "--host",
        type=str,
        help="Host for the API server (default: from config)"
    )

    parser.add_argument(
        "--port",
        type=int,
        help="Port for the API server (default: from config)"
    )

    parser.add_argument(
        "--review",
        action="store_true",
        help="Start with review mode enabled"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--log-to-file",
        action="store_true",
        help="Also write a session log under the configured logs directory"
    )

    parser.add_argument(
        "--skip-validation",
        action="store_true",
        help="Skip API key validation at startup"
    )

    return parser


def main(argv=None):
    """Main entry point for StoryGen."""
    args = build_parser().parse_args(argv)

    # Load configuration
    config_path = Path(args.config) if args.config else Path("config/storygen_config.json")
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        print(f"Could not load config from {config_path}: {e}")
        sys.exit(1)

    if args.review:
        config.review.enabled = True
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port
    set_config(config)

    # Setup logging
    log_level = LogLevel.DEBUG if args.debug else LogLevel.from_name(config.log_level)
    log_file = create_session_log(config.logs_dir) if args.log_to_file else None
    setup_logging(level=log_level, log_file=log_file, verbose=config.verbose_logging)

    logger = get_logger("main")
    logger.info("Starting StoryGen...")
    logger.info(f"Configuration: {config_path if config_path.exists() else 'defaults'}")

    # Validate environment (API keys, etc.)
    if not args.skip_validation:
        validation_result = validate_environment(config)
        if not validation_result.valid:
            logger.error("Environment validation failed:")
            for error in validation_result.errors:
                logger.error(f"  - {error}")
            print("\nEnvironment validation failed. Missing required configuration:")
            for error in validation_result.errors:
                print(f"  x {error}")
            print("\nRun with --skip-validation to bypass (not recommended)")
            sys.exit(1)

        for warning in validation_result.warnings:
            logger.warning(warning)

    run_server(config)


def run_server(config):
    """Build the runtime and serve the debug console API."""
    from storygen.api import start_server
    from storygen.llm import UnconfiguredChatBackend, create_backend
    from storygen.runtime import StorygenRuntime, set_runtime

    logger = get_logger("main")
    try:
        backend = create_backend(config.backend)
    except ConfigurationError as e:
        logger.warning(f"Starting without a generation backend: {e.message}")
        backend = UnconfiguredChatBackend(e.message)

    set_runtime(StorygenRuntime(config, backend=backend))

    print("=" * 60)
    print("  StoryGen - Debug Console API")
    print("=" * 60)
    print(f"  http://{config.server.host}:{config.server.port}")
    print(f"  Review mode: {'on' if config.review.enabled else 'off'}")
    print()

    start_server(host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
