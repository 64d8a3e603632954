"""
Data-plane listen discovery.

The listener status computation compares Gateway listeners against the
protocol/port pairs the data plane really accepts traffic on. This module
provides those pairs, either from the data-plane admin API root document or
from static configuration, and translates container listen ports into the
ports exposed by the publish Service.

Admin root layout (only the fields used here):

    {"configuration": {
        "proxy_listeners": [{"port": 8000, "ssl": false}, ...],
        "stream_listeners": [{"port": 9000, "ssl": false, "udp": false}, ...]}}
"""

import logging
from collections.abc import Iterable
from typing import Any, Protocol

import httpx
from kubernetes import client

from gateway_operator.errors import ConfigurationError, DataPlaneError
from gateway_operator.models.gateway import DataPlaneListen, ProtocolType
from gateway_operator.settings import settings

logger = logging.getLogger(__name__)


def _dedupe(listens: Iterable[DataPlaneListen]) -> list[DataPlaneListen]:
    # dict keeps first-seen order
    return list(dict.fromkeys(listens))


def parse_static_listens(value: str) -> list[DataPlaneListen]:
    """
    Parse a static listen list such as 'HTTP:80,HTTPS:443,TCP:9000'.

    Raises:
        ConfigurationError: If an entry is not PROTOCOL:port
    """
    listens = []
    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue
        protocol, sep, port = entry.partition(":")
        if not sep or not port.strip().isdigit():
            raise ConfigurationError(
                f"Invalid data-plane listen '{entry}'",
                user_action="Set DATAPLANE_LISTENS as PROTOCOL:port pairs, e.g. HTTP:80,HTTPS:443",
            )
        listens.append(
            DataPlaneListen(protocol=protocol.strip().upper(), port=int(port))
        )
    return _dedupe(listens)


def listens_from_admin_root(root: dict[str, Any]) -> list[DataPlaneListen]:
    """
    Convert the data-plane admin root document into listens.

    Proxy listeners are HTTPS when TLS-terminating and HTTP otherwise.
    Stream listeners are TLS, UDP or TCP.
    """
    configuration = root.get("configuration") or {}
    listens = []

    for listener in configuration.get("proxy_listeners") or []:
        protocol = ProtocolType.HTTPS if listener.get("ssl") else ProtocolType.HTTP
        listens.append(DataPlaneListen(protocol=protocol, port=int(listener["port"])))

    for listener in configuration.get("stream_listeners") or []:
        if listener.get("ssl"):
            protocol = ProtocolType.TLS
        elif listener.get("udp"):
            protocol = ProtocolType.UDP
        else:
            protocol = ProtocolType.TCP
        listens.append(DataPlaneListen(protocol=protocol, port=int(listener["port"])))

    return _dedupe(listens)


def map_listens_to_service_ports(
    listens: Iterable[DataPlaneListen], service: client.V1Service | None
) -> list[DataPlaneListen]:
    """
    Translate container listen ports into publish Service ports.

    A listen is exposed on every Service port whose numeric targetPort equals
    the listen port and whose transport matches (UDP for UDP listens, TCP for
    everything else). Listens the Service does not expose are dropped, and
    ports with a named targetPort are skipped with a warning.
    Without a Service the listens are returned unchanged.
    """
    listens = list(listens)
    if service is None or service.spec is None or not service.spec.ports:
        return listens

    metadata = service.metadata
    service_key = f"{metadata.namespace}/{metadata.name}" if metadata else "<unnamed>"

    exposed: list[tuple[str, int, int]] = []
    for service_port in service.spec.ports:
        target = service_port.target_port
        if target is None:
            target = service_port.port
        if isinstance(target, str) and target.isdigit():
            target = int(target)
        if not isinstance(target, int):
            logger.warning(
                f"Skipping port {service_port.port} of Service {service_key}: named "
                f"targetPort '{target}' cannot be matched to a data-plane listen"
            )
            continue
        exposed.append((service_port.protocol or "TCP", target, service_port.port))

    mapped = []
    for listen in listens:
        transport = "UDP" if listen.protocol == ProtocolType.UDP else "TCP"
        for protocol, target, port in exposed:
            if protocol == transport and target == listen.port:
                mapped.append(DataPlaneListen(protocol=listen.protocol, port=port))
    return _dedupe(mapped)


class ListenSource(Protocol):
    """Supplies the data plane's current listens."""

    async def get_listens(self) -> list[DataPlaneListen]: ...  # pragma: no cover


class StaticListenSource:
    """Listens fixed by configuration."""

    def __init__(self, listens: Iterable[DataPlaneListen]):
        self.listens = list(listens)

    async def get_listens(self) -> list[DataPlaneListen]:
        return list(self.listens)


class AdminAPIListenSource:
    """Listens read from the data-plane admin API root endpoint."""

    def __init__(
        self,
        admin_url: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            admin_url: Base URL of the admin API
            timeout: Request timeout in seconds
            http_client: Shared client; a short-lived one is created if omitted
        """
        self.admin_url = admin_url.rstrip("/")
        self.timeout = timeout
        self.http_client = http_client

    async def _fetch_root(self, http_client: httpx.AsyncClient) -> dict[str, Any]:
        response = await http_client.get(f"{self.admin_url}/", timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    async def get_listens(self) -> list[DataPlaneListen]:
        try:
            if self.http_client is not None:
                root = await self._fetch_root(self.http_client)
            else:
                async with httpx.AsyncClient() as http_client:
                    root = await self._fetch_root(http_client)
        except httpx.HTTPStatusError as e:
            raise DataPlaneError(
                "failed to read listen configuration",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise DataPlaneError(f"failed to read listen configuration: {e}") from e

        listens = listens_from_admin_root(root)
        logger.debug(
            f"Discovered {len(listens)} data-plane listens from {self.admin_url}"
        )
        return listens


def get_listen_source() -> ListenSource:
    """Pick the listen source from operator settings."""
    if settings.dataplane_admin_url:
        return AdminAPIListenSource(
            settings.dataplane_admin_url,
            timeout=settings.dataplane_admin_timeout_seconds,
        )
    return StaticListenSource(parse_static_listens(settings.dataplane_listens))
