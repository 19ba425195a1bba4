"""
vpnctl - command line entry point

Thin wrapper so ``python main.py version`` works from a source checkout.
The implementation lives in client/cli_main.py.
"""

import sys

from client.cli_main import run

if __name__ == "__main__":
    sys.exit(run())
