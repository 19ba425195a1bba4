"""Reference daemon core serving version and settings snapshots over JSON-RPC."""
