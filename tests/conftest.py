"""
Shared test fixtures for azclone tests.

This module provides:
- Fake source/destination subscriptions populated with SDK models
- A fixed-suffix identity allocator
- Request and context builders
"""

import io

import pytest

from azclone.identity_allocator import IdentityAllocator
from azclone.models import CloneRequest
from azclone.progress import ProgressDisplay
from tests.fixtures.clone_fixtures import DEST_SUBSCRIPTION, SOURCE_SUBSCRIPTION
from tests.mocks.azure_mock import FakeClientFactory, FakeSubscription

FIXED_SUFFIX = 123456789


@pytest.fixture
def source_sub():
    """Fake source subscription (empty)."""
    return FakeSubscription(SOURCE_SUBSCRIPTION)


@pytest.fixture
def dest_sub():
    """Fake destination subscription (empty)."""
    return FakeSubscription(DEST_SUBSCRIPTION)


@pytest.fixture
def allocator():
    """Identity allocator with a known suffix."""
    return IdentityAllocator(suffix=FIXED_SUFFIX)


@pytest.fixture
def quiet_progress():
    """ProgressDisplay writing to a buffer instead of stdout."""
    return ProgressDisplay(output_file=io.StringIO())


@pytest.fixture
def make_request():
    """Build a CloneRequest for VM1 in RG1 with overrides."""

    def _make(**overrides) -> CloneRequest:
        params = {
            "source_resource_group": "RG1",
            "source_subscription_id": SOURCE_SUBSCRIPTION,
            "source_vm_name": "VM1",
            "vnet_name": "vnet1",
        }
        params.update(overrides)
        return CloneRequest(**params)

    return _make


@pytest.fixture
def client_factory(source_sub, dest_sub):
    """Client factory serving both fake subscriptions."""
    return FakeClientFactory(source_sub, dest_sub)


@pytest.fixture
def resolve_context(client_factory):
    """Run ContextResolver against the fake subscriptions for a request."""
    from azclone.context_resolver import ContextResolver

    def _resolve(request: CloneRequest):
        source = client_factory.for_subscription(request.source_subscription_id)
        dest = client_factory.for_subscription(request.effective_dest_subscription_id)
        return ContextResolver(source, dest).resolve(request)

    return _resolve
