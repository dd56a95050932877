"""Pytest configuration and shared fixtures for ClaimScope tests."""

import os
import sys

import pytest


# ============================================================================
# Ensure the package is importable without an install
# ============================================================================
#
# The codebase uses absolute imports like `from claimscope.services...`.
# This guarantees the repository root is on sys.path during collection.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# Catalog
# ============================================================================

@pytest.fixture
def catalog_repo():
    """In-memory catalog repository seeded with the default catalog."""
    from claimscope.services.catalog_repository import build_default_catalog

    return build_default_catalog()


@pytest.fixture
def catalog(catalog_repo):
    """Catalog snapshot of the default catalog."""
    return catalog_repo.snapshot()


# ============================================================================
# Engine configuration
# ============================================================================

@pytest.fixture
def config():
    """Default engine configuration."""
    from claimscope.config.engine import EngineConfig

    return EngineConfig()


# ============================================================================
# Session state
# ============================================================================

@pytest.fixture
def scope_repo():
    """Empty in-memory scope repository."""
    from claimscope.services.scope_repository import InMemoryScopeRepository

    return InMemoryScopeRepository()


@pytest.fixture
def kitchen_room():
    """20' x 15' x 8' kitchen with no openings recorded."""
    from claimscope.tests.fixtures.inspection_data import make_room

    return make_room(room_id=1, name="Kitchen", room_type="interior_kitchen", length=20, width=15, height=8)


@pytest.fixture
def engine(catalog_repo, scope_repo, config):
    """ScopeEngine over the default catalog and an empty session store."""
    from claimscope.services.scope_engine import ScopeEngine

    return ScopeEngine(catalog_repo, scope_repo, config=config, region_id="US-NATIONAL")
