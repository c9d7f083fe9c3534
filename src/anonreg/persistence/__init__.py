"""Persistence — remembered operator defaults between runs."""
