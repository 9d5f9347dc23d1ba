# storefront/api/deps.py
from fastapi import Depends, Header, Request

from storefront.domain.errors import AuthorizationError
from storefront.domain.identity import Identity
from storefront.services.identity_client import IdentityClient
from storefront.services.live_registry import SubscriberRegistry
from storefront.services.lock_service import LockService
from storefront.services.notification_service import EventFanout


def get_identity_client() -> IdentityClient:
    return IdentityClient()


def get_current_user(
    authorization: str | None = Header(None),
    client: IdentityClient = Depends(get_identity_client),
) -> Identity:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    return client.resolve(token)


def require_admin(user: Identity = Depends(get_current_user)) -> Identity:
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
    return user


def get_registry(request: Request) -> SubscriberRegistry | None:
    return getattr(request.app.state, "subscribers", None)


def get_fanout(registry: SubscriberRegistry | None = Depends(get_registry)) -> EventFanout:
    return EventFanout(registry=registry)


def get_lock_service() -> LockService:
    return LockService()
