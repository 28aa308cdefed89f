"""
Test Suite

Contains unit and integration tests for the backend system.

Structure:
- tests/unit/: Tests for individual components (schemas, normalization, logic)
- tests/integration/: End-to-end tests with actual API calls (optional, can be mocked)

Uses pytest with pytest-asyncio for testing async functionality.
"""
