"""Utility helpers shared by the web API and the CLI."""
