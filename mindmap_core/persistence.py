"""
Persistence Adapter - Maps documents to and from the mind map REST API.

Update is a full-document replace (last write wins). The adapter only talks
to the store; it never touches an in-memory DocumentModel. Callers decide
what to do with the returned document.
"""

from typing import Optional

import httpx
import structlog

from .errors import NotFound, PersistenceFailed
from .models import Document, DocumentSummary
from .validation import ensure_valid

logger = structlog.get_logger(__name__)


class PersistenceAdapter:
    """
    Async client for the /mindmaps endpoints.

    Pass `client` to reuse an existing httpx.AsyncClient (tests hand in one
    bound to an ASGI or mock transport); otherwise one is created lazily.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8765",
        owner_id: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.owner_id = owner_id
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings) -> "PersistenceAdapter":
        return cls(
            base_url=settings.api_base_url,
            owner_id=settings.owner_id,
            timeout=settings.request_timeout,
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._client

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PersistenceAdapter":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    # --- HTTP Helper ---

    async def _request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """Make a request to the store and map failures to editor errors."""
        client = self._get_client()
        try:
            response = await client.request(method, endpoint, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("persistence_timeout", method=method, endpoint=endpoint)
            raise PersistenceFailed(f"Request timed out: {method} {endpoint}", retryable=True) from e
        except httpx.TransportError as e:
            logger.warning("persistence_unreachable", method=method, endpoint=endpoint, error=str(e))
            raise PersistenceFailed(f"Connection failed: {e}", retryable=True) from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(
                "persistence_error",
                method=method,
                endpoint=endpoint,
                status=response.status_code,
                error=message,
            )
            if response.status_code == 404:
                raise NotFound(message)
            raise PersistenceFailed(
                message,
                status_code=response.status_code,
                retryable=response.status_code >= 500,
            )
        return response

    # --- Operations ---

    async def list_documents(self, owner_id: Optional[str] = None) -> list[DocumentSummary]:
        """List the stored mind maps of an owner, newest first."""
        owner = owner_id or self.owner_id
        if not owner:
            raise PersistenceFailed("An owner id is required to list mind maps")
        response = await self._request("GET", "/mindmaps", params={"ownerId": owner})
        return [DocumentSummary.model_validate(item) for item in response.json()]

    async def fetch(self, document_id: str, validate: bool = True) -> Document:
        """
        Load one document by id.

        With `validate` (the default) a document that breaks a structural
        invariant raises ValidationFailed instead of being returned.
        """
        response = await self._request("GET", f"/mindmaps/{document_id}")
        document = _decode(response)
        if validate:
            ensure_valid(document)
        logger.info("document_fetched", document_id=document.id, nodes=len(document.nodes))
        return document

    async def create(self, document: Document, owner_id: Optional[str] = None) -> Document:
        """Store a new document; the returned copy carries the assigned id."""
        owner = owner_id or self.owner_id
        if not owner:
            raise PersistenceFailed("An owner id is required to create a mind map")
        body = {**document.to_wire(), "ownerId": owner}
        response = await self._request("POST", "/mindmaps", json=body)
        created = _decode(response)
        logger.info("document_created", document_id=created.id)
        return created

    async def update(self, document: Document) -> Document:
        """Replace the stored document with this one."""
        if document.id is None:
            raise PersistenceFailed("Cannot update a document that was never saved")
        response = await self._request("PUT", f"/mindmaps/{document.id}", json=document.to_wire())
        updated = _decode(response)
        logger.info("document_saved", document_id=updated.id, nodes=len(updated.nodes))
        return updated

    async def save(self, document: Document) -> Document:
        """Create on first save, full replace afterwards."""
        if document.id is None:
            return await self.create(document)
        return await self.update(document)

    async def delete(self, document_id: str) -> str:
        response = await self._request("DELETE", f"/mindmaps/{document_id}")
        logger.info("document_deleted", document_id=document_id)
        return response.json().get("message", "")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"API error ({response.status_code}): {response.text}"
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or f"API error ({response.status_code})")
    return f"API error ({response.status_code})"


def _decode(response: httpx.Response) -> Document:
    try:
        return Document.from_wire(response.json())
    except (ValueError, KeyError, TypeError) as e:
        raise PersistenceFailed(f"Malformed mind map in response: {e}") from e
