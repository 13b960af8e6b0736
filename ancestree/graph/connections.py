"""Connection requests between users."""

import logging

from pydantic import ValidationError

from ancestree.errors import InvalidRequestError, NotFoundError, StoreError
from ancestree.graph.document_store import DocumentStore
from ancestree.models import ConnectionRequest, ConnectionStatus, now_iso

logger = logging.getLogger(__name__)

CONNECTIONS = "connectionRequests"


class ConnectionRegistry:
    """Send, answer and list connection requests."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def send(self, from_user_id: str, to_user_id: str) -> ConnectionRequest:
        if not from_user_id or not to_user_id or from_user_id == to_user_id:
            raise InvalidRequestError("Invalid users")
        req = ConnectionRequest(from_user_id=from_user_id, to_user_id=to_user_id)
        self.store.set(CONNECTIONS, req.id, req.to_document(), merge=True)
        logger.info("Connection request %s sent", req.id)
        return req

    def get(self, request_id: str) -> ConnectionRequest:
        doc = self.store.get(CONNECTIONS, request_id)
        if doc is None:
            raise NotFoundError(f"Unknown connection request: {request_id}")
        try:
            return ConnectionRequest.model_validate(doc)
        except ValidationError as e:
            raise StoreError(f"Unreadable connection request {request_id}: {e}") from e

    def respond(self, request_id: str, status: str) -> ConnectionRequest:
        if status not in (ConnectionStatus.ACCEPTED.value, ConnectionStatus.DECLINED.value):
            raise InvalidRequestError("Invalid status")
        self.get(request_id)

        self.store.set(
            CONNECTIONS,
            request_id,
            {"status": status, "respondedAt": now_iso()},
            merge=True,
        )
        logger.info("Connection request %s %s", request_id, status)
        return ConnectionRequest.model_validate(self.store.get(CONNECTIONS, request_id))

    def list_for(self, user_id: str) -> dict:
        """Pending requests addressed to and sent by a user."""
        incoming, outgoing = [], []
        for doc_id, doc in self.store.list_documents(CONNECTIONS):
            try:
                req = ConnectionRequest.model_validate(doc)
            except ValidationError as e:
                logger.debug("Skipping malformed connection request %s: %s", doc_id, e)
                continue
            if req.status != ConnectionStatus.PENDING:
                continue
            entry = {"id": doc_id, **req.to_document()}
            if req.to_user_id == user_id:
                incoming.append(entry)
            elif req.from_user_id == user_id:
                outgoing.append(entry)
        return {"incoming": incoming, "outgoing": outgoing}
