"""QR pickup pass service."""
