# ==============================================================================
# AK HARVESTER - MAIN ENTRY POINT
# ==============================================================================
# Launcher for the command-line interface.
#
# Usage:
#   python main.py sync             # Sync every configured server
#   python main.py --help           # Show help
#   python main.py --version        # Show version
#   python main.py --check          # Check dependencies
#   python main.py --paths          # Show data paths
# ==============================================================================

import os
import sys
import traceback

# ==============================================================================
# APPLICATION PATH
# ==============================================================================
APP_PATH = os.path.dirname(os.path.abspath(__file__))


# ==============================================================================
# BANNER
# ==============================================================================

def print_banner():
    """Print the application banner."""
    banner = """
    ╔═══════════════════════════════════════════════════════════════╗
    ║                                                               ║
    ║                        AK  HARVESTER                          ║
    ║                                                               ║
    ║      Incremental Resource Sync & Asset Extraction             ║
    ║                        Version 1.0.0                          ║
    ║                                                               ║
    ╚═══════════════════════════════════════════════════════════════╝
    """
    print(banner)


# ==============================================================================
# DEPENDENCY CHECKS
# ==============================================================================

# import name -> distribution name
CORE_DEPENDENCIES = {
    'requests': 'requests',
    'UnityPy': 'UnityPy',
    'PIL': 'Pillow',
    'Cryptodome': 'pycryptodomex',
    'bson': 'pymongo',
}


def check_dependencies():
    """
    Check if required dependencies are installed.

    Returns:
        Tuple of (all_ok, missing_packages)
    """
    missing = []

    for module, package in CORE_DEPENDENCIES.items():
        try:
            __import__(module)
        except ImportError:
            missing.append(package)

    return (len(missing) == 0, missing)


# ==============================================================================
# ARGUMENT PARSING
# ==============================================================================

def parse_args():
    """Pick out the launcher flags; everything else goes to the CLI."""
    args = {
        'help': sys.argv[1:] in (['--help'], ['-h'], []),
        'version': sys.argv[1:] == ['--version'],
        'check': '--check' in sys.argv[1:2],
        'paths': '--paths' in sys.argv[1:2],
    }
    return args


def show_paths():
    """Print where data and configuration live."""
    from akharvest.core.config import Config
    from akharvest.core.paths import DataPaths

    config = Config()
    config.load()
    paths = DataPaths(config.data_root)

    print("AK Harvester Paths:")
    print(f"  App Path:       {APP_PATH}")
    print(f"  Config:         {config.config_path}")
    print(f"  Data Root:      {paths.root}")
    for server in config.servers:
        print(f"  {server + ' bundles:':<16}{paths.bundles_root(server)}")
        print(f"  {server + ' assets:':<16}{paths.assets_root(server)}")


# ==============================================================================
# MAIN FUNCTION
# ==============================================================================

def main():
    """
    Main entry point for AK Harvester.

    Handles the launcher flags, then hands over to the CLI.
    """
    try:
        args = parse_args()

        if args['version']:
            print("AK Harvester v1.0.0")
            return 0

        if args['check']:
            print("Checking dependencies...")
            print(f"  Python: {sys.version}")

            all_ok, missing = check_dependencies()
            if all_ok:
                print("[OK] All core dependencies installed")
            else:
                print(f"[MISSING] {', '.join(missing)}")
            return 0 if all_ok else 1

        all_ok, missing = check_dependencies()
        if not all_ok:
            print(f"[ERROR] Missing required packages: {', '.join(missing)}")
            return 1

        if args['paths']:
            show_paths()
            return 0

        if args['help']:
            print_banner()

        from akharvest.cli import main as cli_main
        return cli_main(sys.argv[1:] or ['--help'])

    except Exception as e:
        print(f"\n[FATAL ERROR] {e}")
        traceback.print_exc()
        return 1


# ==============================================================================
# SCRIPT ENTRY POINT
# ==============================================================================
if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
