"""Repositories (data access layer)."""
