# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import g, request

from .errors import Forbidden, Unauthenticated
from .services.access_service import Identity, log_denial
from .services.token_service import get_token_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def _is_authenticated() -> bool:
    return getattr(g, "identity", None) is not None


def require_auth(f):
    """
    Require a valid bearer token and establish the request identity.

    Sets g.identity (Identity: user_id, username, role_name) from the token
    claims. No database read happens here.

    SECURITY: Raises Unauthenticated (401, generic message) if:
    - No Authorization header, or not a Bearer token
    - Bad signature, wrong issuer/audience, or expired token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            raise Unauthenticated()

        claims = get_token_service().decode(token)
        g.identity = Identity(
            user_id=claims.user_id,
            username=claims.username,
            role_name=claims.role,
        )
        g.token_claims = claims

        return f(*args, **kwargs)

    return decorated_function


def require_permission(*permission_codes: str):
    """
    Require every listed permission for the caller's role.

    Must be stacked under @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                raise Unauthenticated()

            identity = g.identity
            missing = [code for code in permission_codes if not identity.can(code)]
            if missing:
                log_denial(identity, f"missing permission {', '.join(missing)}")
                raise Forbidden(errors={"requiredPermissions": list(permission_codes)})

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_permission(*permission_codes: str):
    """Require at least one of the listed permissions."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                raise Unauthenticated()

            identity = g.identity
            if not any(identity.can(code) for code in permission_codes):
                log_denial(identity, f"needs any of {', '.join(permission_codes)}")
                raise Forbidden(errors={"requiredPermissions": list(permission_codes)})

            return f(*args, **kwargs)

        return decorated_function
    return decorator
