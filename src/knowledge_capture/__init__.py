"""Capture pipeline for shared links: extract, classify, file and notify."""

__version__ = "0.1.0"
