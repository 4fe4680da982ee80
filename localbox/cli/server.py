"""Server CLI commands."""

import logging
import sys

from localbox.server.app import run
from localbox.server.config import ServerConfig


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )
    if verbose:
        logging.getLogger("aiohttp").setLevel(logging.DEBUG)


def build_config(args) -> ServerConfig:
    """Load the configuration and apply command line overrides."""
    config = ServerConfig.load(args.config_dir)
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    if args.storage_dir:
        config.storage_dir = args.storage_dir
    return config


def subcommand_serve(args) -> None:
    setup_logging(args.verbose)
    run(build_config(args))


def add_parser(subparsers):
    parser_serve = subparsers.add_parser("serve", help="run the LocalBox server")
    parser_serve.add_argument(
        "--config-dir",
        type=str,
        default=None,
        help="directory containing config.yaml (default: $LOCALBOX_CONFIG_DIR or ./config)",
    )
    parser_serve.add_argument("--host", type=str, help="address to bind")
    parser_serve.add_argument("--port", type=int, help="port to listen on")
    parser_serve.add_argument(
        "--storage-dir", type=str, help="base directory for stored files"
    )
    parser_serve.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )
    parser_serve.set_defaults(func=subcommand_serve)
