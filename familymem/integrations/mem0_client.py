"""
HTTP client for a Mem0-compatible memory API

Mem0 deployments differ in which routes they expose, so every operation
tries a short list of endpoints and takes the first one that answers.
Transport failures are logged and reported as False / [] to match the
MemoryStore contract.
"""

from typing import Any, Dict, List, Optional

import requests

from ..utils.exceptions import ConfigurationError
from ..utils.logging import get_logger

logger = get_logger("mem0")

STORE_ENDPOINTS = ("/api/memory/add", "/memories")
SEARCH_ENDPOINTS = ("/api/memory/search", "/search")
HEALTH_ENDPOINTS = (
    "/api/health",
    "/health",
    "/api/status",
    "/status",
    "/memories",
    "/api/memory/search",
)


class Mem0Client:
    """MemoryStore implementation that talks to a Mem0 API over HTTP"""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 5.0,
        source: str = "file_manager",
        session: Optional[requests.Session] = None,
    ):
        if not api_url or not api_key:
            raise ConfigurationError("Mem0 API URL and API key are both required")

        self.base_url = api_url.rstrip("/")
        self.timeout = timeout
        self.source = source
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {api_key}"})

    @classmethod
    def from_settings(cls, settings: Any) -> "Mem0Client":
        """Build from Mem0Settings"""
        if not settings.is_configured:
            raise ConfigurationError(
                "Mem0 is not configured. Set MEM0_API_URL and MEM0_API_KEY"
            )
        return cls(settings.api_url, settings.api_key, timeout=settings.timeout)

    def store_memory(self, user_id: str, family: str, text: str) -> bool:
        payload = {
            "user_id": user_id,
            "text": text,
            "memory": text,
            "metadata": {"ai_family_member_id": family, "source": self.source},
        }
        for endpoint in STORE_ENDPOINTS:
            response = self._request("POST", endpoint, json=payload)
            if response is not None and response.ok:
                return True
        logger.warning(f"Could not store memory for {user_id}/{family} on any endpoint")
        return False

    def get_memories(
        self, user_id: str, family: str, limit: Optional[int] = 10
    ) -> List[Dict[str, Any]]:
        """Family-filtered search first, then the plain listing route"""
        payload = self._query_payload(user_id, family, "", limit)
        memories = self._extract_memories(
            self._request("POST", "/api/memory/search", json=payload)
        )
        if memories is None:
            params = {"user_id": user_id}
            if family:
                params["ai_family_member_id"] = family
            memories = self._extract_memories(self._request("GET", "/memories", params=params))
            if memories is None:
                return []
            # Listing routes may ignore the family parameter
            memories = [m for m in memories if self._belongs_to(m, family)]
        return memories if limit is None else memories[:limit]

    def search_memories(
        self, user_id: str, family: str, query: str, limit: int = 10
    ) -> List[Dict[str, Any]]:
        payload = self._query_payload(user_id, family, query, limit)
        for endpoint in SEARCH_ENDPOINTS:
            memories = self._extract_memories(self._request("POST", endpoint, json=payload))
            if memories is not None:
                return memories
        return []

    def clear_memories(self, user_id: str, family: str) -> bool:
        response = self._request(
            "DELETE",
            "/memories",
            params={"user_id": user_id, "ai_family_member_id": family},
        )
        return response is not None and response.ok

    def check_connection(self) -> str:
        """Return "connected" or "disconnected"; 401/403 still prove the API exists"""
        try:
            response = self.session.head(self.base_url, timeout=self.timeout)
            if response.ok or response.status_code in (401, 403):
                return "connected"
        except requests.RequestException as e:
            logger.debug(f"Direct connection to {self.base_url} failed: {e}")

        for endpoint in HEALTH_ENDPOINTS:
            is_api_route = "memories" in endpoint or "search" in endpoint
            response = self._request("HEAD" if is_api_route else "GET", endpoint)
            if response is None:
                continue
            if response.ok or (is_api_route and response.status_code in (401, 403)):
                logger.info(f"Mem0 API reachable via {endpoint}")
                return "connected"

        return "disconnected"

    def _query_payload(
        self, user_id: str, family: str, query: str, limit: Optional[int]
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"user_id": user_id, "query": query}
        if limit is not None:
            payload["limit"] = limit
        if family:
            payload["filter"] = {"metadata": {"ai_family_member_id": family}}
        return payload

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Optional[requests.Response]:
        url = f"{self.base_url}{endpoint}"
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning(f"Error with endpoint {url}: {e}")
            return None

    def _extract_memories(
        self, response: Optional[requests.Response]
    ) -> Optional[List[Dict[str, Any]]]:
        if response is None or not response.ok:
            return None
        try:
            data = response.json()
        except ValueError:
            logger.warning(f"Non-JSON response from {response.url}")
            return None

        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            return data.get("results") or data.get("memories") or []
        return None

    @staticmethod
    def _belongs_to(memory: Any, family: str) -> bool:
        if not family or not isinstance(memory, dict):
            return True
        metadata = memory.get("metadata")
        owner = metadata.get("ai_family_member_id") if isinstance(metadata, dict) else None
        return owner is None or owner == family
