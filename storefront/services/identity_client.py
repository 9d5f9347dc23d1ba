# storefront/services/identity_client.py
import requests
from requests import RequestException

from storefront.domain.errors import AuthenticationError
from storefront.domain.identity import Identity
from storefront.utils.settings import IDENTITY_SERVICE_URL
from storefront.utils.retry import http_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class IdentityClient:
    """
    Resolves a bearer token to {user_id, role} through the identity service.
    Every failure surfaces as AuthenticationError.
    """

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or IDENTITY_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _fetch_me(self, token: str) -> requests.Response:
        url = f"{self.base_url}/auth/me"
        logger.debug(f"IdentityClient GET {url}")
        return requests.get(
            url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.timeout,
        )

    def resolve(self, token: str | None) -> Identity:
        if not token:
            raise AuthenticationError("Authentication required")

        try:
            resp = self._fetch_me(token)
        except RequestException as e:
            logger.warning(f"Identity service unreachable: {e}")
            raise AuthenticationError("Could not verify credentials")

        if resp.status_code in (401, 403):
            raise AuthenticationError("Invalid or expired token")
        if not resp.ok:
            logger.warning(f"Identity service answered {resp.status_code}")
            raise AuthenticationError("Could not verify credentials")

        data = resp.json()
        user_id = data.get("user_id") or data.get("userId") or data.get("id")
        if not user_id:
            raise AuthenticationError("Invalid or expired token")
        return Identity(user_id=str(user_id), role=data.get("role") or "customer")
