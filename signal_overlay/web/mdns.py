"""mDNS announcement of the dashboard as <WEB_HOSTNAME>.local"""

import logging
import socket
from typing import Optional

from zeroconf import ServiceInfo, Zeroconf

logger = logging.getLogger(__name__)

SERVICE_TYPE = "_http._tcp.local."


def local_ipv4_addresses() -> list[str]:
    """Non-loopback IPv4 addresses of this host, default route first."""
    candidates: list[str] = []

    # Connecting a UDP socket sends nothing but selects the outbound interface
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as probe:
            probe.connect(("192.0.2.1", 9))
            candidates.append(probe.getsockname()[0])
    except OSError:
        pass

    try:
        infos = socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET)
    except OSError:
        infos = []
    candidates.extend(sockaddr[0] for *_, sockaddr in infos)

    addresses: list[str] = []
    for address in candidates:
        if address.startswith("127.") or address == "0.0.0.0" or address in addresses:
            continue
        addresses.append(address)
    return addresses


class DashboardAnnouncer:
    """
    Registers the dashboard's HTTP service on the local network.

    Failures are logged and leave the dashboard reachable by IP only.
    """

    def __init__(self, hostname: str, port: int):
        self.hostname = hostname
        self.port = port
        self._zeroconf: Optional[Zeroconf] = None
        self._info: Optional[ServiceInfo] = None

    @property
    def registered(self) -> bool:
        return self._info is not None

    def register(self) -> bool:
        addresses = local_ipv4_addresses()
        if not addresses:
            logger.warning("mdns_no_address", extra={"hostname": self.hostname})
            return False

        info = ServiceInfo(
            SERVICE_TYPE,
            f"{self.hostname}.{SERVICE_TYPE}",
            addresses=[socket.inet_aton(address) for address in addresses],
            port=self.port,
            properties={"path": "/", "name": "Signal Overlay Dashboard"},
            server=f"{self.hostname}.local.",
        )
        try:
            self._zeroconf = Zeroconf()
            self._zeroconf.register_service(info)
        except Exception as e:
            logger.error("mdns_register_failed", extra={"hostname": self.hostname, "error": str(e)})
            self.close()
            return False

        self._info = info
        logger.info(
            "mdns_registered",
            extra={"hostname": f"{self.hostname}.local", "port": self.port, "addresses": addresses}
        )
        return True

    def close(self) -> None:
        zeroconf, info = self._zeroconf, self._info
        self._zeroconf = None
        self._info = None
        if zeroconf is None:
            return
        try:
            if info is not None:
                zeroconf.unregister_service(info)
            zeroconf.close()
        except Exception as e:
            logger.warning("mdns_unregister_failed", extra={"error": str(e)})
