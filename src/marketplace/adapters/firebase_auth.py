"""
marketplace/adapters/firebase_auth.py — Firebase ID token verifier.

Verification is delegated to ``firebase_admin.auth.verify_id_token``: the SDK
checks signature, ``aud``, ``iss``, ``exp``, ``iat``, ``auth_time`` and ``sub``
and keeps Google's signing certificates in its own HTTP cache.
The SDK call is blocking, so it runs in a worker thread under a timeout.
"""

from __future__ import annotations

import asyncio
import logging

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from marketplace.config import MarketplaceSettings
from marketplace.exceptions import AuthenticationError
from marketplace.models.user import VerifiedIdentity

logger = logging.getLogger(__name__)

APP_NAME = "marketplace"


class FirebaseTokenVerifier:
    """
    Verifies Firebase ID tokens for one Firebase app.

    Built by the application lifespan via ``from_settings()`` and released
    with ``close()``.
    """

    def __init__(
        self,
        app: firebase_admin.App,
        project_id: str,
        *,
        check_revoked: bool = False,
        clock_skew_seconds: int = 0,
        timeout: float = 10.0,
    ) -> None:
        self._app = app
        self.project_id = project_id
        self._check_revoked = check_revoked
        self._clock_skew_seconds = clock_skew_seconds
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: MarketplaceSettings) -> "FirebaseTokenVerifier":
        """Initializes a named Firebase app from MarketplaceSettings."""
        if settings.firebase_credentials_path:
            credential = credentials.Certificate(settings.firebase_credentials_path)
        else:
            credential = credentials.ApplicationDefault()
        options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else {}
        app = firebase_admin.initialize_app(credential, options=options, name=APP_NAME)
        logger.info("Firebase app initialized (project=%s)", settings.firebase_project_id or "<unset>")
        return cls(
            app,
            settings.firebase_project_id,
            check_revoked=settings.firebase_check_revoked,
            clock_skew_seconds=settings.token_leeway_seconds,
            timeout=settings.outbound_timeout_seconds,
        )

    def close(self) -> None:
        firebase_admin.delete_app(self._app)

    async def verify(self, token: str) -> VerifiedIdentity:
        """
        Verifies one ID token and returns the identity it carries.

        Raises:
            AuthenticationError: malformed, expired, revoked or foreign token,
                or the certificate endpoint failed or timed out.
        """
        if not self.project_id:
            logger.error("FIREBASE_PROJECT_ID is not configured — rejecting token")
            raise AuthenticationError(details={"reason": "issuer not configured"})

        try:
            claims = await asyncio.wait_for(
                asyncio.to_thread(
                    auth.verify_id_token,
                    token,
                    app=self._app,
                    check_revoked=self._check_revoked,
                    clock_skew_seconds=self._clock_skew_seconds,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise AuthenticationError(details={"reason": "identity issuer timed out"}) from exc
        except auth.CertificateFetchError as exc:
            logger.warning("Firebase certificate fetch failed: %s", exc)
            raise AuthenticationError(details={"reason": "identity issuer unreachable"}) from exc
        except (FirebaseError, ValueError) as exc:
            raise AuthenticationError(details={"reason": str(exc)}) from exc

        uid = claims.get("uid") or claims.get("sub")
        if not isinstance(uid, str) or not uid:
            raise AuthenticationError(details={"reason": "invalid 'sub' claim"})

        return VerifiedIdentity(uid=uid, email=claims.get("email"), name=claims.get("name"))
