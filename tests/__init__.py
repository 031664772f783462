"""Test suite for omics-clusterval.

Test organization:
- fixtures/: Mock matrix generators and test utilities
- unit/: Unit tests for individual modules and the end-to-end scenario

Run tests with:
    pytest tests/
    pytest tests/unit/
    pytest tests/ -v --tb=short
"""
