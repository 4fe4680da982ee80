"""LocalBox web server."""
