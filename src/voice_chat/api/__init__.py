"""Remote procedure routes."""
