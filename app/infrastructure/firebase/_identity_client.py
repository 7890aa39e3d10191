"""Thin Identity Toolkit REST client (Firebase Auth admin operations, no firebase-admin).

Same approach as the Firestore REST client: google-auth service-account
tokens and httpx.AsyncClient. Covers only what provisioning needs:
create/delete accounts, custom attributes (claims), password updates and
lookups by uid or email.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx

from app.application.dtos.claims import Claims, PrincipalRecord
from app.infrastructure.exceptions import (
    BackendError,
    EmailAlreadyExistsError,
    IdentityProviderError,
    PrincipalNotFoundError,
)
from app.infrastructure.firebase._rest_client import _get_access_token

logger = logging.getLogger(__name__)

IDENTITY_SCOPES = [
    "https://www.googleapis.com/auth/identitytoolkit",
    "https://www.googleapis.com/auth/cloud-platform",
]
_BASE = "https://identitytoolkit.googleapis.com/v1"


def _error_code(resp: httpx.Response) -> str:
    """Extract the provider code ("EMAIL_EXISTS", "WEAK_PASSWORD : ...") from an error body."""
    try:
        message = resp.json().get("error", {}).get("message", "")
    except ValueError:
        message = ""
    return (message or f"HTTP_{resp.status_code}").split(" ", 1)[0].strip()


def _to_principal(user: dict[str, Any]) -> PrincipalRecord:
    raw_attrs = user.get("customAttributes")
    try:
        attrs = json.loads(raw_attrs) if raw_attrs else {}
    except ValueError:
        logger.warning("Ignoring malformed customAttributes for principal %s", user.get("localId"))
        attrs = {}
    return PrincipalRecord(
        uid=user["localId"],
        email=user.get("email"),
        display_name=user.get("displayName"),
        claims=Claims.from_mapping(attrs),
        disabled=bool(user.get("disabled", False)),
    )


class IdentityToolkitRESTClient:
    """Admin client for Firebase Auth principals via Identity Toolkit REST v1."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._prefix = f"{_BASE}/projects/{project_id}"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str:
        return await asyncio.to_thread(_get_access_token, self._credentials)

    async def _post(self, action: str, body: dict[str, Any], *, identifier: str = "") -> dict:
        url = f"{self._prefix}/{action}"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {await self.get_token()}",
        }
        try:
            resp = await self._http.post(url, headers=headers, json=body)
        except httpx.TransportError as exc:
            raise BackendError(f"Identity Toolkit {action} failed: {exc}") from exc
        if resp.status_code == 200:
            return resp.json() if resp.content else {}
        code = _error_code(resp)
        if code in ("EMAIL_EXISTS", "DUPLICATE_EMAIL"):
            raise EmailAlreadyExistsError(body.get("email"))
        if code == "USER_NOT_FOUND":
            raise PrincipalNotFoundError(identifier or "unknown")
        raise IdentityProviderError(code, f"Identity Toolkit {action}: {code}", resp.status_code)

    async def create_account(
        self,
        email: str,
        password: str,
        display_name: str | None = None,
        email_verified: bool = False,
    ) -> str:
        """Create a principal and return its uid.

        Raises:
            EmailAlreadyExistsError: Email already registered.
            IdentityProviderError: Any other rejection (e.g. WEAK_PASSWORD).
        """
        body: dict[str, Any] = {
            "email": email,
            "password": password,
            "emailVerified": email_verified,
        }
        if display_name:
            body["displayName"] = display_name
        out = await self._post("accounts", body)
        return out["localId"]

    async def set_custom_attributes(self, uid: str, attributes: dict[str, Any]) -> None:
        """Replace the principal's custom claims."""
        await self._post(
            "accounts:update",
            {"localId": uid, "customAttributes": json.dumps(attributes)},
            identifier=uid,
        )

    async def update_password(self, uid: str, password: str) -> None:
        await self._post(
            "accounts:update", {"localId": uid, "password": password}, identifier=uid
        )

    async def delete_account(self, uid: str) -> None:
        """Delete a principal. Raises PrincipalNotFoundError if it does not exist."""
        await self._post("accounts:delete", {"localId": uid}, identifier=uid)

    async def get_account(self, uid: str) -> PrincipalRecord | None:
        out = await self._post("accounts:lookup", {"localId": [uid]}, identifier=uid)
        users = out.get("users") or []
        return _to_principal(users[0]) if users else None

    async def get_account_by_email(self, email: str) -> PrincipalRecord | None:
        out = await self._post("accounts:lookup", {"email": [email]}, identifier=email)
        users = out.get("users") or []
        return _to_principal(users[0]) if users else None
