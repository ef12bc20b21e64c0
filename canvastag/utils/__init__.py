"""Utility helpers for canvastag."""
