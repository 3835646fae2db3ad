"""Core settings and utilities."""
