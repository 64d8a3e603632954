"""Unit tests for the gateway operator."""
