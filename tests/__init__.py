"""
Provisioner Test Suite
======================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/          → Tests for provisioner.core (config, exceptions, logging)
    ├── test_assets/        → Tests for provisioner.assets (store, persistence, assets)
    ├── test_synchronizer/  → Tests for provisioner.synchronizer (poll, watch, bootstrap)
    ├── test_orchestration/ → Tests for provisioner.orchestration (targets, runner)
    ├── test_integration/   → End-to-end integration tests
    └── conftest.py         → Shared pytest fixtures

Running Tests:
    pytest                          # Run all tests
    pytest tests/test_assets/       # Run only asset tests
    pytest --cov=provisioner        # Run with coverage report
"""
