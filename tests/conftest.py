"""
Pytest configuration and fixtures.
"""
import importlib.util
import os
import sys

import boto3
import pytest
from moto import mock_aws

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, ROOT_DIR)

from build_cache.config.settings import reset_settings  # noqa: E402
from build_cache.data_access.blob_client import S3BlobClient  # noqa: E402
from build_cache.data_access.cache_entries_repository import CacheEntriesRepository  # noqa: E402
from build_cache.data_access.dynamodb_client import DynamoDBClient  # noqa: E402
from build_cache.data_access.size_ledger import SizeLedger  # noqa: E402
from build_cache.services.cache_engine import CacheEngine  # noqa: E402
from build_cache.services.token_authority import TokenAuthority  # noqa: E402

ENTRIES_TABLE = 'CacheEntries-test'
COUNTERS_TABLE = 'CacheCounters-test'
BUCKET = 'build-cache-test'
SECRET_KEY = 'test-secret-key'
READ_ONLY_TOKEN = 'ro-token'
READ_WRITE_TOKEN = 'rw-token'


@pytest.fixture(scope="session")
def aws_credentials():
    """Mock AWS credentials for testing."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture(scope="session", autouse=True)
def env_vars():
    """Set up environment variables for tests."""
    os.environ["AWS_REGION"] = "us-east-1"
    os.environ["CACHE_ENTRIES_TABLE_NAME"] = ENTRIES_TABLE
    os.environ["CACHE_COUNTERS_TABLE_NAME"] = COUNTERS_TABLE
    os.environ["CACHE_BUCKET_NAME"] = BUCKET
    os.environ["AUTH_SECRET_KEY"] = SECRET_KEY
    os.environ["READ_ONLY_TOKEN"] = READ_ONLY_TOKEN
    os.environ["READ_WRITE_TOKEN"] = READ_WRITE_TOKEN
    os.environ["METRICS_ENABLED"] = "false"


@pytest.fixture(autouse=True)
def fresh_settings():
    """Re-read settings for every test."""
    reset_settings()
    yield
    reset_settings()


class FakeClock:
    """Controllable Unix clock in seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def aws(aws_credentials):
    """Moto-backed entries table, counters table and blob bucket."""
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name='us-east-1')
        dynamodb.create_table(
            TableName=ENTRIES_TABLE,
            KeySchema=[{'AttributeName': 'cacheKey', 'KeyType': 'HASH'}],
            AttributeDefinitions=[{'AttributeName': 'cacheKey', 'AttributeType': 'S'}],
            BillingMode='PAY_PER_REQUEST'
        )
        dynamodb.create_table(
            TableName=COUNTERS_TABLE,
            KeySchema=[{'AttributeName': 'counterName', 'KeyType': 'HASH'}],
            AttributeDefinitions=[{'AttributeName': 'counterName', 'AttributeType': 'S'}],
            BillingMode='PAY_PER_REQUEST'
        )
        boto3.client('s3', region_name='us-east-1').create_bucket(Bucket=BUCKET)
        yield dynamodb


@pytest.fixture
def dynamodb_client(aws):
    return DynamoDBClient(region='us-east-1')


@pytest.fixture
def blob_client(aws):
    return S3BlobClient(region='us-east-1')


@pytest.fixture
def repository(dynamodb_client, blob_client, clock):
    return CacheEntriesRepository(
        table_name=ENTRIES_TABLE,
        bucket_name=BUCKET,
        dynamodb_client=dynamodb_client,
        blob_client=blob_client,
        clock=clock
    )


@pytest.fixture
def ledger(dynamodb_client):
    return SizeLedger(COUNTERS_TABLE, dynamodb_client)


@pytest.fixture
def token_authority():
    return TokenAuthority(READ_ONLY_TOKEN, READ_WRITE_TOKEN, SECRET_KEY)


@pytest.fixture
def make_engine(repository, ledger, token_authority):
    """Factory for engines over the moto store with custom limits."""
    def _make(max_item_size=100, max_total_size=1000, ttl_seconds=3600):
        return CacheEngine(
            entries_repository=repository,
            size_ledger=ledger,
            token_authority=token_authority,
            max_item_size=max_item_size,
            max_total_size=max_total_size,
            ttl_seconds=ttl_seconds
        )
    return _make


def load_module(name: str, relative_path: str):
    """
    Load a module by file path.

    Lambda handler directories sit under ``lambda/`` (a keyword) and share
    the module name ``handler``, so they are loaded under unique names.
    """
    path = os.path.join(ROOT_DIR, relative_path)
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    spec.loader.exec_module(module)
    return module
