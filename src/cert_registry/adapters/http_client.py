"""
HTTP adapter — resolve bearer tokens to caller identities via httpx.

Adapter layer — implements the CallerResolver port by calling the identity
provider's OpenID Connect userinfo endpoint with the caller's token.

  GET {userinfo_url}  Authorization: Bearer <token>
    → claims JSON
    → username claim + role claim
    → roles mapped to privileges through configuration

Token validation itself belongs to the identity provider: a 401/403 from
the userinfo endpoint means the token is not accepted.

Retry/backoff via tenacity on transient errors (network, timeout).
All HTTP errors are captured into Result failures — no exceptions
leak to the business logic layer.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import httpx
import structlog
from railway import ErrorCode
from railway.result import Result
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cert_registry.domain.models import CallerContext

log = structlog.get_logger()


def _roles_from_claims(claims: Mapping[str, Any], roles_claim: str) -> list[str]:
    """
    Read the role claim, following dotted paths such as `realm_access.roles`.

    A single string role is accepted as a one-element list.
    """
    value: Any = claims
    for part in roles_claim.split("."):
        if not isinstance(value, Mapping):
            return []
        value = value.get(part)
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(role) for role in value]
    return []


class HttpCallerResolver:
    """
    Resolve callers through the OpenID Connect userinfo endpoint.

    Implements the CallerResolver port.
    Uses tenacity retry on transient network errors only.
    """

    def __init__(
        self,
        userinfo_url: str,
        role_privileges: Mapping[str, Sequence[str]],
        username_claim: str = "preferred_username",
        roles_claim: str = "roles",
        timeout: int = 10,
    ) -> None:
        self._userinfo_url = userinfo_url
        self._role_privileges = role_privileges
        self._username_claim = username_claim
        self._roles_claim = roles_claim
        self._timeout = timeout

    def resolve(self, bearer_token: str) -> Result[CallerContext]:
        """
        Fetch the caller's claims and build a CallerContext.

        Returns Result.failure(AUTHENTICATION_ERROR, ...) when the token is
        empty or rejected, or the claims carry no username, and
        Result.failure(EXTERNAL_SERVICE_ERROR, ...) when the identity
        provider cannot be reached.
        """
        if not bearer_token:
            return Result.failure(ErrorCode.AUTHENTICATION_ERROR, "Bearer token is required")
        return (
            Result.from_computation(
                lambda: self._do_userinfo_request(bearer_token),
                ErrorCode.EXTERNAL_SERVICE_ERROR,
                "Identity provider request failed",
            )
            .flat_map(self._claims_from_response)
            .flat_map(self._caller_from_claims)
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=0.1, max=5),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    def _do_userinfo_request(self, bearer_token: str) -> httpx.Response:
        """HTTP call with retry — exceptions caught by from_computation."""
        with httpx.Client(timeout=self._timeout) as client:
            return client.get(
                self._userinfo_url,
                headers={"Authorization": f"Bearer {bearer_token}"},
            )

    def _claims_from_response(self, response: httpx.Response) -> Result[dict[str, Any]]:
        if response.status_code in (401, 403):
            log.info("caller.token_rejected", status=response.status_code)
            return Result.failure(ErrorCode.AUTHENTICATION_ERROR, "Invalid or expired token")
        if response.is_error:
            log.error("caller.userinfo_failed", status=response.status_code)
            return Result.failure(
                ErrorCode.EXTERNAL_SERVICE_ERROR,
                f"Identity provider responded with status {response.status_code}",
            )
        return Result.from_computation(
            response.json,
            ErrorCode.EXTERNAL_SERVICE_ERROR,
            "Identity provider returned malformed claims",
        )

    def _caller_from_claims(self, claims: dict[str, Any]) -> Result[CallerContext]:
        username = claims.get(self._username_claim)
        if not username:
            return Result.failure(
                ErrorCode.AUTHENTICATION_ERROR,
                f"Token carries no '{self._username_claim}' claim",
            )
        roles = _roles_from_claims(claims, self._roles_claim)
        privileges = frozenset(
            privilege
            for role in roles
            for privilege in self._role_privileges.get(role, ())
        )
        log.debug("caller.resolved", username=username, roles=roles)
        return Result.success(CallerContext(username=str(username), privileges=privileges))
