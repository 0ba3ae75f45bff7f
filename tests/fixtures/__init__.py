"""Test fixtures for plainsql."""
