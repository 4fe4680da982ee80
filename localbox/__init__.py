"""LocalBox self-hosted file storage."""
