"""Utilities: configuration loading, identifier naming, logging setup."""
