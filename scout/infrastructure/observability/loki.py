"""
Loki log backend: pushes LogEvents to a Grafana Loki push endpoint.

Every stream carries the fixed ``application`` label so events can be
queried with ``{application="<label>"}``.
"""

from typing import Dict, Optional
import json
import httpx

from scout.domain.errors import SinkError
from scout.domain.models.events import LogEvent

PUSH_PATH = "/loki/api/v1/push"


class LokiBackend:
    """Ships one LogEvent per push request"""

    def __init__(
        self,
        base_url: str,
        application: str = "scout",
        extra_labels: Optional[Dict[str, str]] = None,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.push_url = base_url.rstrip("/") + PUSH_PATH
        self.application = application
        self.extra_labels = extra_labels or {}
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def build_payload(self, event: LogEvent) -> Dict:
        labels = {
            **self.extra_labels,
            "application": self.application,
            "severity": event.severity.value,
        }
        timestamp_ns = str(int(event.timestamp.timestamp() * 1_000_000_000))
        line = json.dumps(event.to_record(), default=str)
        return {"streams": [{"stream": labels, "values": [[timestamp_ns, line]]}]}

    async def ship(self, event: LogEvent) -> None:
        try:
            response = await self._client.post(self.push_url, json=self.build_payload(event))
        except httpx.HTTPError as e:
            raise SinkError(f"loki push failed: {e}") from e
        if response.status_code >= 300:
            raise SinkError(
                f"loki push returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code
            )

    async def aclose(self) -> None:
        await self._client.aclose()
