"""Shared helpers for the todo store."""
