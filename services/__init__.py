"""Outbound collaborators of the pass service."""
