"""Client layer for vpnctl.

This package contains the CLI client that talks to the local daemon over
JSON-RPC and renders what it reports.

Current scope: the ``version`` command.
"""
