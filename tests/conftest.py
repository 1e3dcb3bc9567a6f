"""
OrderDesk - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator

import pytest
from faker import Faker
from httpx import ASGITransport

# Set testing environment
os.environ['ORDERDESK_ENVIRONMENT'] = 'testing'
os.environ['ORDERDESK_API_BASE_URL'] = 'http://gateway.test'
os.environ['ORDERDESK_ACCESS_TOKEN'] = 'test-access-token'
os.environ['ORDERDESK_LOG_FILE'] = ''

from orderdesk.api_client import OrderDeskAPIClient
from orderdesk.services.document_export import DocumentExportPipeline
from orderdesk.services.downloads import DownloadManager
from orderdesk.services.resource_controller import OrderController, UserController
from tests.mocks.fake_gateway import FakeGateway

fake = Faker()


def always_confirm(message: str) -> bool:
    return True


@pytest.fixture
def gateway() -> FakeGateway:
    """Fresh in-memory gateway for each test"""
    return FakeGateway()


@pytest.fixture
async def api_client(gateway: FakeGateway) -> AsyncGenerator[OrderDeskAPIClient, None]:
    """API client wired to the fake gateway"""
    transport = ASGITransport(app=gateway.app)
    async with OrderDeskAPIClient(base_url='http://gateway.test', transport=transport) as client:
        yield client


@pytest.fixture
def users(api_client: OrderDeskAPIClient) -> UserController:
    return UserController(api_client, confirm=always_confirm)


@pytest.fixture
def orders(api_client: OrderDeskAPIClient) -> OrderController:
    return OrderController(api_client, confirm=always_confirm)


@pytest.fixture
def download_dir(tmp_path):
    path = tmp_path / 'downloads'
    path.mkdir()
    return path


@pytest.fixture
def staging_dir(tmp_path):
    path = tmp_path / 'staging'
    path.mkdir()
    return path


@pytest.fixture
def downloads(download_dir, staging_dir) -> DownloadManager:
    return DownloadManager(download_dir=str(download_dir), staging_dir=str(staging_dir))


@pytest.fixture
def pipeline(api_client: OrderDeskAPIClient, downloads: DownloadManager) -> DocumentExportPipeline:
    return DocumentExportPipeline(api_client, downloads)


@pytest.fixture
def user_payload() -> dict:
    """Random user fields in the gateway's camelCase shape"""
    first, last = fake.first_name(), fake.last_name()
    return {
        'username': fake.unique.user_name(),
        'email': fake.unique.email(),
        'firstName': first,
        'lastName': last,
        'phone': fake.numerify('555-####'),
        'address': fake.street_address(),
    }
