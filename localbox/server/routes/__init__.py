"""HTTP route tables."""
