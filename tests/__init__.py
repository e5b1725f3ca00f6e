"""
Tile Map Renderer test suite

Structure:
- unit/: tests for the templater, level resolver, grid calculator, renderer,
  surface, metadata client and host configuration
- integration/: metadata -> render -> PNG through the CLI and the HTTP app,
  with HTTP replaced by an in-memory session
- conftest.py: shared documents, levels and fake HTTP/tile loaders
"""
