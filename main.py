#!/usr/bin/env python3
"""
Main entry point for Stageboard - Workflow pipeline boards and intake assistant

Usage:
    python main.py          # Starts the HTTP API by default
    python main.py api      # Explicitly starts the HTTP API
    python main.py cli      # Opens CLI
    python main.py cli [args...]  # Pass arguments to CLI
"""

import sys

from cli.app import main as cli_main


def main():
    """Main entry point that routes to the HTTP API or the CLI based on arguments."""

    # Default to the API if no arguments provided
    if len(sys.argv) == 1:
        mode = "api"
    else:
        mode = sys.argv[1].lower()

    if mode == "api":
        # The serve command owns host/port options; remaining args pass through
        sys.argv[1:2] = ["serve"]
        cli_main()

    elif mode == "cli":
        # Remove 'cli' from argv to pass remaining args to CLI
        sys.argv.pop(1)
        cli_main()

    elif mode in ["--help", "-h", "help"]:
        print(__doc__)
        print("\nAdditional Information:")
        print("  API: Serves the boards and assistant endpoints with uvicorn")
        print("  CLI: Command-line interface for boards, config and intake")
        sys.exit(0)

    else:
        # Assume it's a CLI command and let CLI handle it
        cli_main()


if __name__ == "__main__":
    main()
