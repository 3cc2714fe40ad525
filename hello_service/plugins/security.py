# hello_service/plugins/security.py
"""
Bearer-token (JWT) authentication, available to routes that opt in.

Installing the scheme does not protect anything. A route asks for it
explicitly:

    @router.get("/me")
    def me(principal: JWTPrincipal = Depends(authenticated())):
        ...
"""

import logging
from typing import Dict, Optional

import jwt
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hello_service.config import JWTConfig
from hello_service.models.auth import JWTPrincipal

logger = logging.getLogger(__name__)

DEFAULT_SCHEME = "auth-jwt"

_bearer = HTTPBearer(auto_error=False)


class JWTScheme:
    def __init__(self, name: str, config: JWTConfig):
        self.name = name
        self.realm = config.realm
        self.issuer = config.domain
        self.audience = config.audience
        self.algorithm = config.algorithm
        self.leeway = config.leeway
        self._secret = config.secret

    def _challenge(self, detail: str) -> HTTPException:
        return HTTPException(
            status_code=401,
            detail=detail,
            headers={"WWW-Authenticate": f'Bearer realm="{self.realm}"'},
        )

    def verify(self, token: str) -> JWTPrincipal:
        """Validate signature, expiry, issuer and audience of `token`."""
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                leeway=self.leeway,
            )
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected token for scheme %s: %s", self.name, exc)
            raise self._challenge("Token is not valid or has expired") from exc

        principal = JWTPrincipal.from_claims(claims)
        if self.audience not in principal.audience:
            raise self._challenge("Token is not valid or has expired")
        return principal

    def authenticate(
        self, credentials: Optional[HTTPAuthorizationCredentials]
    ) -> JWTPrincipal:
        if credentials is None or credentials.scheme.lower() != "bearer":
            raise self._challenge("Not authenticated")
        return self.verify(credentials.credentials)


def authenticated(scheme: str = DEFAULT_SCHEME):
    """Build a dependency that requires a valid token for the named scheme."""

    def dependency(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    ) -> JWTPrincipal:
        schemes: Dict[str, JWTScheme] = getattr(request.app.state, "auth_schemes", {})
        if scheme not in schemes:
            raise RuntimeError(f"authentication scheme {scheme!r} is not installed")
        return schemes[scheme].authenticate(credentials)

    return dependency


def configure_security(app: FastAPI) -> None:
    settings = app.state.settings
    scheme = JWTScheme(DEFAULT_SCHEME, settings.jwt)
    app.state.auth_schemes = {scheme.name: scheme}
    logger.debug("Registered authentication scheme %s (realm=%s)", scheme.name, scheme.realm)
