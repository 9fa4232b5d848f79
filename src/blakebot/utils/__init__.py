"""Helpers shared across the application."""
