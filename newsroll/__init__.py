"""
Newsroll - News Feed Ingestion Pipeline

Fetches articles from RSS, Atom and RDF feeds, normalizes their fields,
classifies them into a fixed set of display categories, resolves a hero
image and merges them into a persisted article store without duplicates.
"""

__version__ = "0.1.0"
