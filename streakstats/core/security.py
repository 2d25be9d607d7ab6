from fastapi.security import HTTPAuthorizationCredentials
from fastapi.security import HTTPBearer


bearer_scheme = HTTPBearer(auto_error=False)


def optional_bearer_token(
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    """Extract a Bearer token if one was supplied.

    A missing, malformed, or empty credential yields None; callers fall back
    to the server token or to public data.
    """

    if credentials is None:
        return None

    if credentials.scheme.lower() != "bearer" or not credentials.credentials.strip():
        return None

    return credentials.credentials.strip()


def resolve_github_token(
    credentials: HTTPAuthorizationCredentials | None, server_token: str | None
) -> str | None:
    """Prefer the caller's token over the one configured for the server."""

    return optional_bearer_token(credentials) or server_token or None
