"""Digest rendering and the update/digest pipelines."""
