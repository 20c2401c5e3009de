"""Blob storage port and invoice upload.

Invoices live at ``invoices/{order_id}/{invoice_number}.pdf`` in a public
bucket. A missing bucket is created on first use and the upload retried once.
"""

import re
from abc import ABC, abstractmethod

from checkout.errors import BucketNotFound, StorageError
from checkout.utils.logging import get_logger

logger = get_logger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


class BlobStorage(ABC):
    """Abstract content store."""

    @abstractmethod
    async def upload(self, bucket: str, path: str, data: bytes, content_type: str, upsert: bool = True) -> None:
        """Store ``data`` at ``path``. Raises ``BucketNotFound`` or ``StorageError``."""
        ...

    @abstractmethod
    async def create_bucket(self, name: str, public: bool = True) -> None: ...

    @abstractmethod
    def get_public_url(self, bucket: str, path: str) -> str: ...


class InMemoryBlobStorage(BlobStorage):
    """Process-local store for development and testing.

    ``available = False`` simulates an outage: every call raises ``StorageError``.
    """

    def __init__(self, base_url: str = "https://storage.local/public") -> None:
        self.base_url = base_url.rstrip("/")
        self.buckets: dict[str, dict[str, tuple[bytes, str]]] = {}
        self.public_buckets: set[str] = set()
        self.available = True
        self.upload_attempts = 0

    def _check_available(self) -> None:
        if not self.available:
            raise StorageError("Storage service unavailable")

    async def upload(self, bucket, path, data, content_type, upsert=True):
        self.upload_attempts += 1
        self._check_available()
        if bucket not in self.buckets:
            raise BucketNotFound(bucket)
        objects = self.buckets[bucket]
        if path in objects and not upsert:
            raise StorageError(f"Object already exists: {path}")
        objects[path] = (bytes(data), content_type)

    async def create_bucket(self, name, public=True):
        self._check_available()
        self.buckets.setdefault(name, {})
        if public:
            self.public_buckets.add(name)

    def get_public_url(self, bucket, path):
        return f"{self.base_url}/{bucket}/{path}"

    def read(self, bucket: str, path: str) -> bytes:
        return self.buckets[bucket][path][0]


def invoice_path(order_id: str, invoice_number: str) -> str:
    safe_number = re.sub(r"[^A-Za-z0-9-]", "_", invoice_number)
    return f"invoices/{order_id}/{safe_number}.pdf"


async def store_invoice_pdf(storage: BlobStorage, bucket: str, order_id: str, invoice_number: str, data: bytes) -> str:
    """Upload a rendered invoice and return its public URL."""
    path = invoice_path(order_id, invoice_number)
    try:
        await storage.upload(bucket, path, data, PDF_CONTENT_TYPE, upsert=True)
    except BucketNotFound:
        logger.info("Creating invoice bucket", bucket=bucket)
        await storage.create_bucket(bucket, public=True)
        await storage.upload(bucket, path, data, PDF_CONTENT_TYPE, upsert=True)

    url = storage.get_public_url(bucket, path)
    logger.info("Invoice PDF stored", order_id=order_id, invoice_number=invoice_number, url=url)
    return url
