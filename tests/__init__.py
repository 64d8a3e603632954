"""
Tests package - Test suite for the gateway operator.

Contains:
- unit/: Unit tests for individual components
"""
