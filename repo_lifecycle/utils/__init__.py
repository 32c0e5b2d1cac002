"""Utility modules for the repository lifecycle engine."""
