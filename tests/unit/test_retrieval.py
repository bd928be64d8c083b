"""
Unit tests for the retrieval service and storage clients.

The service runs against the in-memory MockStorageClient and a fake
credential source. The Azure client is exercised with the real SDK
BlobClient for addressing and a stand-in for downloads, so no request
leaves the process.
"""

import io

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError

from src.core.retrieval.errors import FetchFailure, InvalidBlobIdError
from src.core.retrieval.locator import build_locator, validate_blob_id
from src.core.retrieval.service import BlobRetrievalService
from src.infrastructure.identity.provider import AuthenticationUnavailable
from src.infrastructure.storage import client as storage_module
from src.infrastructure.storage.client import (
    AzureBlobStorageClient,
    BlobNotFoundError,
    MockStorageClient,
    StorageConfig,
    StorageError,
    create_storage_client,
)

ACCOUNT_URL = "https://teststore.blob.core.windows.net"
CONTAINER = "public"
BASE_URL = f"{ACCOUNT_URL}/{CONTAINER}"
CAT_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-cat\xff\xd9"


class FakeCredentialSource:
    """Credential source returning a fixed object, or failing."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls = 0
        self.credential = object()

    def get_credential(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.credential


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient({f"{BASE_URL}/cat1.jpg": CAT_BYTES})


@pytest.fixture
def credentials() -> FakeCredentialSource:
    return FakeCredentialSource()


@pytest.fixture
def service(storage, credentials) -> BlobRetrievalService:
    return BlobRetrievalService(
        credential_source=credentials,
        storage=storage,
        account_url=ACCOUNT_URL,
        container_name=CONTAINER,
    )


# ---------------------------------------------------------------------------
# Retrieval Service Tests
# ---------------------------------------------------------------------------

class TestBlobRetrievalService:
    """Tests for Validate -> Locate -> Authenticate -> Fetch."""

    def test_retrieves_object_bytes(self, service, storage):
        retrieved = service.retrieve("cat1")

        assert retrieved.content.read() == CAT_BYTES
        assert retrieved.content_type == "image/jpeg"
        assert retrieved.locator.url == f"{BASE_URL}/cat1.jpg"
        assert storage.download_log == [f"{BASE_URL}/cat1.jpg"]

    def test_stream_is_rewound(self, service):
        """The buffer is positioned at the start before it is handed back."""
        retrieved = service.retrieve("cat1")

        assert retrieved.content.tell() == 0
        assert retrieved.size_bytes == len(CAT_BYTES)

    @pytest.mark.parametrize("blob_id", [None, "", "  ", "../cat1", "a/b", "a\\b", "cat 1"])
    def test_invalid_ids_never_reach_storage(self, service, storage, credentials, blob_id):
        """Rejected ids don't resolve a credential or fetch anything."""
        with pytest.raises(InvalidBlobIdError):
            service.retrieve(blob_id)

        assert storage.download_log == []
        assert credentials.calls == 0

    def test_missing_object_is_fetch_failure(self, service):
        with pytest.raises(FetchFailure) as exc_info:
            service.retrieve("doesnotexist")

        assert exc_info.value.blob_id == "doesnotexist"
        assert isinstance(exc_info.value.__cause__, BlobNotFoundError)
        assert "doesnotexist" in str(exc_info.value)

    def test_authentication_failure_is_fetch_failure(self, storage):
        """Credential errors map the same way as storage errors."""
        service = BlobRetrievalService(
            credential_source=FakeCredentialSource(AuthenticationUnavailable("no identity")),
            storage=storage,
            account_url=ACCOUNT_URL,
            container_name=CONTAINER,
        )

        with pytest.raises(FetchFailure, match="no identity"):
            service.retrieve("cat1")

        assert storage.download_log == []

    def test_sequential_requests_fetch_each_time(self, service, storage):
        """Object contents are not cached between requests."""
        service.retrieve("cat1")
        service.retrieve("cat1")

        assert storage.download_log == [f"{BASE_URL}/cat1.jpg"] * 2

    def test_same_credential_used_for_every_fetch(self, storage, credentials):
        seen = []

        class RecordingStorage:
            def download_to(self, locator, credential, sink):
                seen.append(credential)
                return storage.download_to(locator, credential, sink)

        service = BlobRetrievalService(credentials, RecordingStorage(), ACCOUNT_URL, CONTAINER)

        service.retrieve("cat1")
        service.retrieve("cat1")

        assert seen == [credentials.credential, credentials.credential]

    def test_configured_extension_and_content_type(self, credentials):
        storage = MockStorageClient({f"{BASE_URL}/logo.png": b"png"})
        service = BlobRetrievalService(
            credentials, storage, ACCOUNT_URL, CONTAINER, extension=".png", content_type="image/png"
        )

        retrieved = service.retrieve("logo")

        assert retrieved.content.read() == b"png"
        assert retrieved.content_type == "image/png"


# ---------------------------------------------------------------------------
# Azure Storage Client Tests
# ---------------------------------------------------------------------------

def make_locator(blob_id: str, account_url: str = ACCOUNT_URL):
    return build_locator(account_url, CONTAINER, validate_blob_id(blob_id))


class TestAzureBlobClientAddressing:
    """
    Tests against the real azure-storage-blob BlobClient (no requests sent).

    '%' and '#' are allowed in ids, so the blob name must reach the SDK
    as a name. Decoding '%2F' or cutting at '#' would address a different
    object, or a different container.
    """

    @pytest.mark.parametrize("blob_id", [
        "a%2Fb",
        "%2E%2E%2Fx",
        "%2E%2E%2Fprivate%2Fsecret",
        "cat#1",
        "a%2Fb#c",
    ])
    def test_blob_name_is_the_id_verbatim(self, blob_id):
        client = AzureBlobStorageClient()

        blob_client = client.get_blob_client(make_locator(blob_id), credential=None)

        assert blob_client.container_name == "public"
        assert blob_client.blob_name == f"{blob_id}.jpg"

    @pytest.mark.parametrize("blob_id,encoded_name", [
        ("a%2Fb", "a%252Fb.jpg"),
        ("%2E%2E%2Fx", "%252E%252E%252Fx.jpg"),
        ("cat#1", "cat%231.jpg"),
    ])
    def test_request_url_stays_in_container(self, blob_id, encoded_name):
        """Reserved characters are escaped, so the path can't be rewritten."""
        client = AzureBlobStorageClient()

        blob_client = client.get_blob_client(make_locator(blob_id), credential=None)

        assert blob_client.url == f"{BASE_URL}/{encoded_name}"


class FakeDownloader:
    def __init__(self, data: bytes) -> None:
        self._data = data

    def readinto(self, stream) -> int:
        stream.write(self._data)
        return len(self._data)


class FakeBlobClient:
    """Stand-in for azure.storage.blob.BlobClient."""

    instances: list["FakeBlobClient"] = []
    data: bytes = b""
    error: Exception | None = None

    def __init__(self, account_url, container_name, blob_name, credential=None) -> None:
        if account_url.startswith("not-a-url"):
            raise ValueError("Invalid URL")
        self.account_url = account_url
        self.container_name = container_name
        self.blob_name = blob_name
        self.credential = credential
        self.timeouts = []
        FakeBlobClient.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return None

    def download_blob(self, timeout=None):
        self.timeouts.append(timeout)
        if FakeBlobClient.error is not None:
            raise FakeBlobClient.error
        return FakeDownloader(FakeBlobClient.data)


@pytest.fixture
def fake_blob_client(monkeypatch):
    FakeBlobClient.instances = []
    FakeBlobClient.data = CAT_BYTES
    FakeBlobClient.error = None
    monkeypatch.setattr(storage_module, "BlobClient", FakeBlobClient)
    return FakeBlobClient


class TestAzureBlobStorageClient:
    """Tests for SDK error translation."""

    def test_downloads_into_sink(self, fake_blob_client):
        client = AzureBlobStorageClient(StorageConfig(timeout_seconds=5))
        credential = object()
        sink = io.BytesIO()

        size = client.download_to(make_locator("cat1"), credential, sink)

        assert size == len(CAT_BYTES)
        assert sink.getvalue() == CAT_BYTES
        instance = fake_blob_client.instances[0]
        assert instance.account_url == ACCOUNT_URL
        assert instance.container_name == CONTAINER
        assert instance.blob_name == "cat1.jpg"
        assert instance.credential is credential
        assert instance.timeouts == [5]

    def test_missing_blob_raises_not_found(self, fake_blob_client):
        fake_blob_client.error = ResourceNotFoundError("The specified blob does not exist.")
        client = AzureBlobStorageClient()

        with pytest.raises(BlobNotFoundError):
            client.download_to(make_locator("doesnotexist"), object(), io.BytesIO())

    def test_access_denied_raises_storage_error(self, fake_blob_client):
        fake_blob_client.error = HttpResponseError("This request is not authorized")
        client = AzureBlobStorageClient()

        with pytest.raises(StorageError, match="not authorized"):
            client.download_to(make_locator("cat1"), object(), io.BytesIO())

    def test_malformed_account_url_raises_storage_error(self, fake_blob_client):
        client = AzureBlobStorageClient()

        with pytest.raises(StorageError, match="Invalid URL"):
            client.download_to(make_locator("cat1", account_url="not-a-url"), object(), io.BytesIO())


class TestStorageFactory:
    """Tests for create_storage_client."""

    def test_mock_mode_returns_mock(self):
        assert isinstance(create_storage_client(mock_mode=True), MockStorageClient)

    def test_default_returns_azure_client(self):
        assert isinstance(create_storage_client(), AzureBlobStorageClient)
