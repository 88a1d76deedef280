import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Fetch and activate the domain by pushing the associated domain_context. The activated domain can then be referred to elsewhere as `current_domain`
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["BCRYPT_ROUNDS"] = "4"
    os.environ["JWT_SECRET"] = "test-secret"
    os.environ["ADMIN_EMAIL"] = "admin@example.com"
    os.environ["SITE_URL"] = "http://testserver"
    os.environ["PAYMENT_GATEWAY"] = "fake"
    os.environ["IMAGE_STORE"] = "memory"

    from storefront.domain import storefront

    storefront.init()
    storefront.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    setup_db(storefront)

    yield

    drop_db(storefront)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain

    from storefront.payments.gateway import reset_gateway

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

    reset_gateway()


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_user():
    """Register a user directly through the command and return its id."""
    from protean.utils.globals import current_domain

    from storefront.identity.registration import RegisterUser
    from storefront.identity.security import hash_password

    def _make(name="Jane Doe", email="jane@example.com", password="secret-pass"):
        command = RegisterUser(name=name, email=email, password_hash=hash_password(password))
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture()
def make_product():
    """Create a product through CreateProduct and return its id."""
    import json

    from protean.utils.globals import current_domain

    from storefront.catalogue.creation import CreateProduct

    def _make(title="Red Shirt", price=25.0, sizes=None, shipping_options=None, **overrides):
        values = {
            "title": title,
            "price": price,
            "product_type": "Shirts",
            "sizes": json.dumps(sizes or []),
            "shipping_options": json.dumps(
                shipping_options if shipping_options is not None else [{"name": "Standard", "price": 5.0}]
            ),
        }
        values.update(overrides)
        return current_domain.process(CreateProduct(**values), asynchronous=False)

    return _make


@pytest.fixture()
def make_image():
    """Register image metadata (without bytes) and return its id."""
    from uuid import uuid4

    from protean.utils.globals import current_domain

    from storefront.media.management import RegisterImage

    def _make(filename=None, file_id=None):
        command = RegisterImage(
            filename=filename or f"1700000000000-{uuid4().hex[:8]}.png",
            original_name="photo.png",
            content_type="image/png",
            size=3,
            file_id=file_id or uuid4().hex,
        )
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture()
def auth_cookie():
    """Build a Cookie header for a user id."""
    from storefront.identity.security import issue_token

    def _headers(user_id):
        return {"Cookie": f"token={issue_token(str(user_id))}"}

    return _headers


@pytest.fixture()
def admin_id(make_user):
    return make_user(name="Admin", email="admin@example.com")


@pytest.fixture()
def build_client():
    """TestClient over the given routers, backed by an in-memory image store."""
    from fastapi import FastAPI
    from fastapi.testclient import TestClient
    from protean.integrations.fastapi import register_exception_handlers

    from storefront.media.store.memory_adapter import InMemoryImageStore

    def _build(*routers):
        app = FastAPI()
        app.state.image_store = InMemoryImageStore()
        register_exception_handlers(app)
        for router in routers:
            app.include_router(router)
        return TestClient(app)

    return _build
