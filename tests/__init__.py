"""
Test suite for the bike shop POS backend.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_catalog_import_service.py -v
"""
