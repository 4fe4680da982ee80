"""API data models for the LocalBox server."""
