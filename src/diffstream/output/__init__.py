"""Renderers for parsed diffs."""
