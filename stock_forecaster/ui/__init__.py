"""Presentation-facing entry points."""
