"""Test suite for the notes search service."""
