"""Google Cloud Storage client.

Implements ObjectStoreClientPort on top of ``google-cloud-storage``.
Authentication uses a service account JSON key with full storage control.
Library and transport exceptions are translated into ObjectStoreError and
its subclasses at this boundary.

Visibility is read from the object ACL, fetched with the ``full``
projection on head and list requests: an ``allUsers`` READER entry means
the object is public. On buckets with uniform bucket-level access object
ACLs are disabled: writes and copies skip them and set_acl fails without
sending a request.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Generator, Mapping

from google.api_core import exceptions as google_exceptions
from google.api_core.client_info import ClientInfo
from google.auth import exceptions as auth_exceptions
from google.auth.credentials import AnonymousCredentials, Credentials
from google.cloud import storage
from google.oauth2 import service_account

from bucketfs.domain.exceptions import ConfigurationError, StorageConnectionError
from bucketfs.infrastructure.config import AdapterConfig
from bucketfs.infrastructure.logging import get_logger
from bucketfs.ports.outbound import (
    Acl,
    ListPage,
    ObjectCopyIncompleteError,
    ObjectNotFoundError,
    ObjectPreconditionFailedError,
    ObjectStat,
    ObjectStoreError,
)


SCOPES = ("https://www.googleapis.com/auth/devstorage.full_control",)
PUBLIC_ENTITY = "allUsers"
READER_ROLE = "READER"

logger = get_logger(__name__)


@contextmanager
def _translate_errors(key: str | None) -> Generator[None, None, None]:
    try:
        yield
    except google_exceptions.NotFound as exc:
        raise ObjectNotFoundError(str(exc), key=key, status=exc.code) from exc
    except google_exceptions.PreconditionFailed as exc:
        raise ObjectPreconditionFailedError(str(exc), key=key, status=exc.code) from exc
    except google_exceptions.GoogleAPICallError as exc:
        raise ObjectStoreError(str(exc), key=key, status=exc.code) from exc
    except (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError, OSError) as exc:
        # Transport failures (requests errors are OSErrors) carry no status.
        raise ObjectStoreError(str(exc), key=key) from exc


def _acl_from_properties(properties: Mapping[str, Any]) -> Acl:
    for entry in properties.get("acl") or ():
        if entry.get("entity") == PUBLIC_ENTITY and entry.get("role") == READER_ROLE:
            return Acl.PUBLIC_READ
    return Acl.PRIVATE


def _to_stat(blob: storage.Blob, acl: Acl | None = None) -> ObjectStat:
    return ObjectStat(
        key=blob.name,
        size=blob.size or 0,
        updated=blob.updated or datetime.now(timezone.utc),
        generation=blob.generation or 0,
        acl=acl or _acl_from_properties(blob._properties),
        content_type=blob.content_type,
        metadata=dict(blob.metadata or {}),
    )


class GCSObjectStoreClient:
    """ObjectStoreClientPort backed by one Google Cloud Storage bucket.

    The underlying ``storage.Client`` is shared for the adapter's lifetime
    and is safe for concurrent independent requests.
    """

    def __init__(
        self,
        client: storage.Client,
        bucket: storage.Bucket,
        *,
        uniform_access: bool = False,
    ) -> None:
        self._client = client
        self._bucket = bucket
        self._uniform_access = uniform_access

    @classmethod
    def connect(cls, config: AdapterConfig) -> "GCSObjectStoreClient":
        """Authenticate and verify access to the configured bucket.

        Performs one request (a bucket metadata fetch), which also tells
        whether the bucket uses uniform bucket-level access.

        Raises:
            ConfigurationError: If the credentials cannot be loaded.
            StorageConnectionError: If authentication or the bucket fetch fails.
        """
        credentials = cls._load_credentials(config)
        client_info = ClientInfo(user_agent=config.application_name) if config.application_name else None
        client_options = {"api_endpoint": config.endpoint} if config.endpoint else None
        project = config.project or getattr(credentials, "project_id", None)

        try:
            client = storage.Client(
                project=project,
                credentials=credentials,
                client_info=client_info,
                client_options=client_options,
            )
            bucket = client.bucket(config.bucket)
            with _translate_errors(None):
                bucket.reload(timeout=config.request_timeout)
        except ObjectStoreError as exc:
            raise StorageConnectionError(
                f"Could not access bucket: {exc}",
                bucket=config.bucket,
                status=exc.status,
            ) from exc

        uniform_access = bool(bucket.iam_configuration.uniform_bucket_level_access_enabled)
        logger.info(
            "gcs_bucket_connected",
            bucket=config.bucket,
            project=project,
            uniform_access=uniform_access,
        )
        return cls(client, bucket, uniform_access=uniform_access)

    @staticmethod
    def _load_credentials(config: AdapterConfig) -> Credentials:
        if config.anonymous:
            return AnonymousCredentials()

        try:
            credentials = service_account.Credentials.from_service_account_file(
                str(config.credentials_file),
                scopes=SCOPES,
            )
        except (OSError, ValueError) as exc:
            raise ConfigurationError(
                f"Cannot load service account key: {exc}",
                fields=["credentials_file"],
            ) from exc

        expected = config.service_account_email
        if expected and credentials.service_account_email != expected:
            raise ConfigurationError(
                f"Key file belongs to {credentials.service_account_email}, expected {expected}",
                fields=["service_account_email"],
            )
        return credentials

    @property
    def supports_preconditions(self) -> bool:
        return True

    @property
    def bucket_name(self) -> str:
        return self._bucket.name

    @property
    def uniform_access(self) -> bool:
        """Whether the bucket has uniform bucket-level access (no object ACLs)."""
        return self._uniform_access

    def head_object(self, key: str, *, timeout: float | None = None) -> ObjectStat:
        blob = self._bucket.blob(key)
        with _translate_errors(key):
            blob.reload(projection="full", timeout=timeout)
        return _to_stat(blob)

    def get_object(self, key: str, *, timeout: float | None = None) -> bytes:
        blob = self._bucket.blob(key)
        with _translate_errors(key):
            return blob.download_as_bytes(timeout=timeout)

    def put_object(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str,
        metadata: Mapping[str, str] | None = None,
        acl: Acl = Acl.PRIVATE,
        if_generation_match: int | None = None,
        timeout: float | None = None,
    ) -> ObjectStat:
        blob = self._bucket.blob(key)
        if metadata:
            blob.metadata = dict(metadata)
        with _translate_errors(key):
            blob.upload_from_string(
                data,
                content_type=content_type,
                predefined_acl=None if self._uniform_access else acl.value,
                if_generation_match=if_generation_match,
                timeout=timeout,
            )
        return _to_stat(blob, None if self._uniform_access else acl)

    def delete_object(self, key: str, *, timeout: float | None = None) -> None:
        with _translate_errors(key):
            self._bucket.delete_blob(key, timeout=timeout)

    def list_objects(
        self,
        prefix: str,
        *,
        page_token: str | None = None,
        max_results: int | None = None,
        timeout: float | None = None,
    ) -> ListPage:
        with _translate_errors(prefix):
            iterator = self._client.list_blobs(
                self._bucket,
                prefix=prefix or None,
                page_token=page_token,
                page_size=max_results,
                projection="full",
                timeout=timeout,
            )
            page = next(iterator.pages, None)
            entries = [_to_stat(blob) for blob in page] if page is not None else []
        return ListPage(entries=entries, next_page_token=iterator.next_page_token)

    def copy_object(
        self,
        src_key: str,
        dst_key: str,
        *,
        acl: Acl | None = None,
        if_generation_match: int | None = None,
        timeout: float | None = None,
    ) -> ObjectStat:
        source = self._bucket.blob(src_key)
        with _translate_errors(src_key):
            copied = self._bucket.copy_blob(
                source,
                self._bucket,
                dst_key,
                if_generation_match=if_generation_match,
                timeout=timeout,
            )
        if acl is None or self._uniform_access:
            return _to_stat(copied)

        # Copies get the bucket's default object ACL.
        try:
            self.set_acl(dst_key, acl, timeout=timeout)
        except ObjectStoreError as exc:
            self._discard_copy(copied, exc, timeout=timeout)
            raise ObjectStoreError(
                f"Could not apply ACL to copy, copy removed: {exc}",
                key=dst_key,
                status=exc.status,
            ) from exc
        return _to_stat(copied, acl)

    def _discard_copy(
        self,
        copied: storage.Blob,
        cause: ObjectStoreError,
        *,
        timeout: float | None,
    ) -> None:
        """Remove a copy whose ACL could not be applied."""
        try:
            with _translate_errors(copied.name):
                self._bucket.delete_blob(
                    copied.name,
                    if_generation_match=copied.generation,
                    timeout=timeout,
                )
        except ObjectNotFoundError:
            pass
        except ObjectStoreError as exc:
            logger.warning(
                "gcs_copy_cleanup_failed",
                bucket=self._bucket.name,
                key=copied.name,
                error=exc,
            )
            raise ObjectCopyIncompleteError(
                f"Copy created {copied.name} but could not apply its ACL: {cause}",
                key=copied.name,
                status=cause.status,
            ) from cause
        logger.info(
            "gcs_copy_discarded",
            bucket=self._bucket.name,
            key=copied.name,
            error=cause,
        )

    def set_acl(self, key: str, acl: Acl, *, timeout: float | None = None) -> None:
        if self._uniform_access:
            raise ObjectStoreError(
                "Object ACLs are disabled by uniform bucket-level access",
                key=key,
            )
        blob = self._bucket.blob(key)
        with _translate_errors(key):
            blob.acl.save_predefined(acl.value, timeout=timeout)
