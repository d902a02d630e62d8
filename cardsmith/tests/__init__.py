"""Cardsmith test suite."""
