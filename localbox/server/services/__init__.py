"""Filesystem-backed services behind the HTTP routes."""
