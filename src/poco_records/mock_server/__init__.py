"""Mock patients service for local development and integration testing."""
