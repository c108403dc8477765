"""Shipped base-layer translation documents, one JSON file per language."""
