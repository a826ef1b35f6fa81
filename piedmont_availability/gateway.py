import logging
from typing import Any, Dict, Optional

import cloudscraper
import requests

from piedmont_availability import config
from piedmont_availability.errors import MalformedUpstreamShape, UpstreamRejected
from piedmont_availability.token_cache import TokenCache

logger = logging.getLogger(__name__)

Params = Dict[str, Any]


class BookerGateway:
    """Authenticated access to api.booker.com.

    Booker wants the token twice: as a bearer header and as the
    ``access_token`` query parameter. Nothing here retries.
    """

    def __init__(
        self,
        token_cache: TokenCache,
        session: Optional[requests.Session] = None,
        base_url: str = config.BASE_API_URL,
        subscription_key: str = config.SUBSCRIPTION_KEY,
        timeout: int = config.REQUEST_TIMEOUT_SECONDS,
    ):
        self.token_cache = token_cache
        self.session = session or cloudscraper.create_scraper()
        self.base_url = base_url.rstrip("/")
        self.subscription_key = subscription_key
        self.timeout = timeout

    def build_headers(self, token: str) -> Dict[str, str]:
        headers = dict(config.COMMON_HEADERS)
        headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Ocp-Apim-Subscription-Key": self.subscription_key,
                "Content-Type": "application/json",
            }
        )
        return headers

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Params] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Performs one API call and returns the decoded JSON body."""
        token = self.token_cache.get_token()
        query = dict(params or {})
        query["access_token"] = token
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url} params={params}")

        try:
            response = self.session.request(
                method,
                url,
                params=query,
                headers=self.build_headers(token),
                json=json_body,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Error calling {path}: {e}")
            raise UpstreamRejected(None, str(e)) from e

        logger.debug(f"Response status: {response.status_code}")
        if not response.ok:
            logger.error(f"API request to {path} failed: {response.status_code} {response.reason}")
            raise UpstreamRejected(response.status_code, response.reason or "")

        try:
            return response.json()
        except ValueError as e:
            raise MalformedUpstreamShape(f"Response from {path} is not JSON: {e}") from e

    def request_with_reauth(
        self,
        method: str,
        path: str,
        params: Optional[Params] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Like request(), but on an auth rejection drops the token and tries once more."""
        try:
            return self.request(method, path, params=params, json_body=json_body)
        except UpstreamRejected as e:
            if not e.is_auth_failure:
                raise
            logger.warning(f"Token rejected ({e.status_code}), refreshing and retrying once")
            self.token_cache.invalidate()
            return self.request(method, path, params=params, json_body=json_body)
