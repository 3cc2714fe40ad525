# hello_service/models/auth.py

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class JWTPrincipal(BaseModel):
    subject: Optional[str] = None
    issuer: Optional[str] = None
    audience: List[str] = Field(default_factory=list)
    claims: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "JWTPrincipal":
        audience = claims.get("aud") or []
        if isinstance(audience, str):
            audience = [audience]
        return cls(
            subject=claims.get("sub"),
            issuer=claims.get("iss"),
            audience=list(audience),
            claims=claims,
        )
