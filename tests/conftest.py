import pytest

from mediapress.config import Settings
from mediapress.main import create_app
from mediapress.services.container import assemble_services, build_storage

from doubles import FakeBroker, new_redis


@pytest.fixture
def settings(tmp_path):
    return Settings(
        app_url="http://testserver",
        storage_dir=str(tmp_path / "uploads"),
        processing_timeout_ms=30000,
    )


@pytest.fixture
def broker():
    return FakeBroker()


@pytest.fixture
def app_factory(broker):
    """App wired to fakeredis and the fake broker, with local storage under tmp_path"""

    def factory(settings: Settings, engine=None):
        # Called from the lifespan, inside the TestClient event loop
        def services_factory(s: Settings):
            return assemble_services(s, new_redis(), broker, build_storage(s), engine=engine)
        return create_app(settings, services_factory=services_factory)

    return factory
