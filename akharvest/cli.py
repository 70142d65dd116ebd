# ==============================================================================
# AK HARVESTER - COMMAND LINE INTERFACE
# ==============================================================================
# Command-line front end for the sync pipeline.
#
# Commands:
#   - sync:    version -> download -> unpack -> extract, for every server
#   - version: Print the latest resource version of a server
#   - download / unpack / extract: Run a single stage
#   - config:  Show or create the configuration file
#
# Usage:
#   akharvest sync
#   akharvest sync --server cn --version 24-02-02-10-18-07-831840
#   akharvest extract --server us --verbose
#   akharvest config init --config my_config.json
# ==============================================================================

import argparse
import json
import sys
import traceback
from typing import List, Optional

from .core.config import Config
from .pipeline import ResourcePipeline


# ==============================================================================
# COLOR HELPERS FOR TERMINAL OUTPUT
# ==============================================================================
class Colors:
    """ANSI color codes for terminal output."""
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    END = '\033[0m'

    @classmethod
    def disable(cls):
        """Disable colors (for non-supporting terminals)."""
        cls.HEADER = ''
        cls.BLUE = ''
        cls.CYAN = ''
        cls.GREEN = ''
        cls.YELLOW = ''
        cls.RED = ''
        cls.BOLD = ''
        cls.END = ''


def print_header(text: str):
    """Print a header."""
    print(f"\n{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}  {text}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}\n")


def print_success(text: str):
    """Print a success message."""
    print(f"{Colors.GREEN}✓ {text}{Colors.END}")


def print_error(text: str):
    """Print an error message."""
    print(f"{Colors.RED}✗ {text}{Colors.END}")


def print_info(text: str):
    """Print an info message."""
    print(f"{Colors.BLUE}ℹ {text}{Colors.END}")


def print_warning(text: str):
    """Print a warning message."""
    print(f"{Colors.YELLOW}⚠ {text}{Colors.END}")


# ==============================================================================
# CONFIGURATION
# ==============================================================================
def load_config(args) -> Config:
    """Load the config file and apply command-line overrides."""
    config = Config(args.config)
    config.load()

    if args.workers is not None:
        config.workers = args.workers
    if args.data_root:
        config.data_root = args.data_root
    if args.verbose:
        config.verbose_export = True
    if getattr(args, 'convert_audio', False):
        config.convert_audio = True
    if getattr(args, 'server', None):
        config.servers = [args.server]
    if getattr(args, 'version', None):
        config.version = args.version
    if args.debug:
        config.debug_mode = True

    # main() reads this back to decide on a traceback
    args.debug = config.debug_mode
    return config


def get_pipeline(config: Config) -> ResourcePipeline:
    """Create the pipeline for a loaded config."""
    return ResourcePipeline(config)


# ==============================================================================
# SYNC COMMANDS
# ==============================================================================
def cmd_sync(args):
    """Run every stage for the configured servers."""
    config = load_config(args)
    print_header("Resource Sync")

    pipeline = get_pipeline(config)
    for result in pipeline.sync_all():
        print_success(
            f"{result.server} {result.version}: {result.downloaded} downloaded, "
            f"{result.unpacked} unpacked, {len(result.assets.extracted)} bundles extracted"
        )


def cmd_version(args):
    """Print the latest resource version of each server."""
    config = load_config(args)
    pipeline = get_pipeline(config)
    for server in config.servers:
        print(f"{server}: {pipeline.get_latest_version(server)}")


def cmd_download(args):
    """Download missing blobs."""
    config = load_config(args)
    pipeline = get_pipeline(config)
    for server in config.servers:
        version = pipeline.resolve_version(server)
        count = pipeline.download_files(server, version)
        print_success(f"{server} {version}: {count} blobs downloaded")


def cmd_unpack(args):
    """Unpack downloaded blobs into the bundle tree."""
    config = load_config(args)
    pipeline = get_pipeline(config)
    for server in config.servers:
        version = pipeline.resolve_version(server)
        count = pipeline.extract_files(server, version)
        print_success(f"{server} {version}: {count} bundle files written")


def cmd_extract(args):
    """Extract assets from the bundle tree."""
    config = load_config(args)
    pipeline = get_pipeline(config)
    for server in config.servers:
        summary = pipeline.extract_assets(server)
        print_success(f"{server}: {len(summary.extracted)} bundles extracted")


# ==============================================================================
# CONFIG COMMANDS
# ==============================================================================
def cmd_config_show(args):
    """Print the effective configuration."""
    config = load_config(args)
    print(json.dumps(config.data, indent=4, sort_keys=True))


def cmd_config_init(args):
    """Write a configuration file with default values."""
    config = Config(args.config)
    if config.load() and not args.force:
        print_warning(f"{config.config_path} already exists (use --force to overwrite)")
        return
    config.reset_to_defaults()
    if config.save():
        print_success(f"Wrote {config.config_path}")


# ==============================================================================
# MAIN ARGUMENT PARSER
# ==============================================================================
def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--config', help='Config file (default: ./config.json)')
    common.add_argument('--workers', type=int, help='Number of worker threads')
    common.add_argument('--data-root', help='Data root directory')
    common.add_argument('--verbose', '-v', action='store_true', help='Log skipped bundles too')
    common.add_argument('--no-color', action='store_true', help='Disable colored output')
    common.add_argument('--debug', action='store_true', help='Print tracebacks on failure')

    target = argparse.ArgumentParser(add_help=False)
    target.add_argument('--server', help='Only process this server')
    target.add_argument('--version', help='Resource version (default: latest)')

    parser = argparse.ArgumentParser(
        prog='akharvest',
        description="AK Harvester - incremental resource sync and asset extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s sync                          Sync every configured server
  %(prog)s sync --server cn              Sync one server
  %(prog)s version --server us           Show the latest version
  %(prog)s extract --server jp -v        Re-run asset extraction only
  %(prog)s config init                   Write a default config.json
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    sync_parser = subparsers.add_parser('sync', parents=[common, target],
                                        help='Download, unpack and extract')
    sync_parser.add_argument('--convert-audio', action='store_true', help='Convert audio to .wav')
    sync_parser.set_defaults(func=cmd_sync)

    version_parser = subparsers.add_parser('version', parents=[common],
                                           help='Show the latest resource version')
    version_parser.add_argument('--server', help='Only query this server')
    version_parser.set_defaults(func=cmd_version)

    download_parser = subparsers.add_parser('download', parents=[common, target],
                                            help='Download missing blobs')
    download_parser.set_defaults(func=cmd_download)

    unpack_parser = subparsers.add_parser('unpack', parents=[common, target],
                                          help='Unpack blobs into the bundle tree')
    unpack_parser.set_defaults(func=cmd_unpack)

    extract_parser = subparsers.add_parser('extract', parents=[common],
                                           help='Extract assets from the bundle tree')
    extract_parser.add_argument('--server', help='Only process this server')
    extract_parser.add_argument('--convert-audio', action='store_true', help='Convert audio to .wav')
    extract_parser.set_defaults(func=cmd_extract)

    config_parser = subparsers.add_parser('config', help='Show or create the config file')
    config_sub = config_parser.add_subparsers(dest='subcommand')

    config_show = config_sub.add_parser('show', parents=[common], help='Print the effective config')
    config_show.set_defaults(func=cmd_config_show)

    config_init = config_sub.add_parser('init', parents=[common], help='Write a default config')
    config_init.add_argument('--force', action='store_true', help='Overwrite an existing file')
    config_init.set_defaults(func=cmd_config_init)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for CLI.

    Returns:
        Exit code (0 for success)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, 'no_color', False) or not sys.stdout.isatty():
        Colors.disable()

    if not hasattr(args, 'func'):
        parser.print_help()
        return 0 if not args.command else 1

    try:
        args.func(args)
    except KeyboardInterrupt:
        print_warning("Interrupted")
        return 130
    except Exception as e:
        print(f"[ERROR] {e}")
        if getattr(args, 'debug', False):
            traceback.print_exc()
        print_error(f"{args.command} failed")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
