"""Utilities for analysing scheduler runs."""
