"""Ports layer - interfaces the application depends on."""
