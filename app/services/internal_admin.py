from fastapi import Depends, Security

from app.core.config import Settings, get_settings
from app.core.errors import UnauthenticatedError, UnauthorizedError
from app.services.basic_auth import authorization_header


async def require_admin_token(
    authorization: str | None = Security(authorization_header),
    settings: Settings = Depends(get_settings),
) -> None:
    # Operator tooling only: the whole header value must equal the static token.
    if not authorization:
        raise UnauthenticatedError("Admin token required", reason="header_missing")
    expected = settings.admin_api_token.get_secret_value()
    if not expected or authorization != expected:
        raise UnauthorizedError("Admin token required")
