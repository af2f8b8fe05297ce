"""Watchlist tracker application: configuration, services and CLI."""
