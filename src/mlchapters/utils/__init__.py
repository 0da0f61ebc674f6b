"""Shared utilities (logging, hashing)."""
