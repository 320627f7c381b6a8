"""Shared helpers used across swaggerbot subpackages."""
