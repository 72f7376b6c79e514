"""HubSpot CRM v3 client used as the ActivityLog for message sync.

Only the three calls the sync protocol needs: contact search by phone,
contact creation, and note creation associated to a contact.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import requests

from smsgateway.observability.logging import get_logger
from smsgateway.observability.redaction import hash_identifier, safe_log_context

logger = get_logger(__name__)

# HUBSPOT_DEFINED association type: note -> contact
NOTE_TO_CONTACT_ASSOCIATION_TYPE = 202


class HubSpotError(Exception):
    """HubSpot answered, but not with what we asked for."""


class HubSpotClient:
    """Bearer-token HubSpot client over requests.

    Each call is a standalone requests.post, so one instance can be shared by
    every sync worker thread.

    Args:
        token: Private app access token.
        base_url: API root (overridable for tests/sandboxes).
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.hubapi.com",
        timeout: float = 10,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST JSON and return the decoded object.

        Raises:
            requests.RequestException: Network error, timeout or non-2xx.
            HubSpotError: Body is not a JSON object.
        """
        response = requests.post(
            f"{self._base_url}{path}",
            json=payload,
            headers=self._headers,
            timeout=self._timeout,
        )
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError as e:
            raise HubSpotError(f"non-JSON response from {path}") from e
        if not isinstance(data, dict):
            raise HubSpotError(f"unexpected response shape from {path}")
        return data

    def find_contact(self, phone: str) -> str | None:
        """Return the id of the first contact whose phone equals `phone`."""
        data = self._post(
            "/crm/v3/objects/contacts/search",
            {
                "filterGroups": [
                    {"filters": [{"propertyName": "phone", "operator": "EQ", "value": phone}]}
                ],
                "properties": ["phone", "firstname", "lastname"],
            },
        )
        results = data.get("results") or []
        if not results:
            return None
        contact_id = results[0].get("id") if isinstance(results[0], dict) else None
        return str(contact_id) if contact_id else None

    def create_contact(self, phone: str) -> str:
        data = self._post("/crm/v3/objects/contacts", {"properties": {"phone": phone}})
        contact_id = data.get("id")
        if not contact_id:
            raise HubSpotError("contact created without id")
        logger.info(
            "hubspot contact created",
            extra={"extra_fields": safe_log_context(phone_hash=hash_identifier(phone))},
        )
        return str(contact_id)

    def create_note(self, contact_id: str, body: str, timestamp: datetime) -> str:
        data = self._post(
            "/crm/v3/objects/notes",
            {
                "properties": {
                    "hs_timestamp": timestamp.isoformat(),
                    "hs_note_body": body,
                },
                "associations": [
                    {
                        "to": {"id": contact_id},
                        "types": [
                            {
                                "associationCategory": "HUBSPOT_DEFINED",
                                "associationTypeId": NOTE_TO_CONTACT_ASSOCIATION_TYPE,
                            }
                        ],
                    }
                ],
            },
        )
        return str(data.get("id", ""))
