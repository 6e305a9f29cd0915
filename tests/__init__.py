"""Tests for the simple_dex package."""
