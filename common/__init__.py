"""Shared types, errors and logging for the tile map renderer."""
