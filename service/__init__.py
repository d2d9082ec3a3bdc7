"""Scan service: configuration, persistence and submission."""
