"""Shared utilities for the motel booking engine."""
