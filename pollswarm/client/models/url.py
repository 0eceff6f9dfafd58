import socket
from ipaddress import IPv6Address, ip_address
from typing import List, Tuple
from urllib.parse import urlparse

import aiodns


class URL:
    __slots__ = (
        "resolver",
        "parsed",
        "hostname",
        "is_ssl",
        "port",
        "full",
        "family",
        "ip_addresses",
    )

    def __init__(
        self,
        url: str,
        force_ipv4: bool = False,
        resolver: aiodns.DNSResolver | None = None,
    ) -> None:
        self.resolver = resolver
        self.parsed = urlparse(url)
        self.hostname = self.parsed.hostname
        self.is_ssl = self.parsed.scheme == "https"

        port = 443 if self.is_ssl else 80

        self.port = self.parsed.port if self.parsed.port else port
        self.full = url
        self.family = socket.AF_INET if force_ipv4 else socket.AF_UNSPEC
        self.ip_addresses: List[Tuple[str, socket.AddressFamily]] = []

    def __iter__(self):
        for ip_info in self.ip_addresses:
            yield ip_info

    @property
    def host_header(self):
        hostname = self.hostname.encode("idna").decode()
        if self.port not in [80, 443]:
            return f"{hostname}:{self.port}"

        return hostname

    async def lookup(self):
        if len(self.ip_addresses) > 0:
            return self.ip_addresses

        try:
            literal_address = ip_address(self.hostname)

        except ValueError:
            literal_address = None

        if literal_address is not None:
            socket_family = (
                socket.AF_INET6
                if isinstance(literal_address, IPv6Address)
                else socket.AF_INET
            )

            self.ip_addresses = [(str(literal_address), socket_family)]

            return self.ip_addresses

        if self.resolver is None:
            async with aiodns.DNSResolver() as resolver:
                resolved = await self._resolve(resolver)

        else:
            resolved = await self._resolve(self.resolver)

        addresses: List[Tuple[str, socket.AddressFamily]] = []
        for node in resolved.nodes:
            host = node.addr[0]
            if isinstance(host, bytes):
                host = host.decode()

            address = (host, socket.AddressFamily(node.family))
            if address not in addresses:
                addresses.append(address)

        self.ip_addresses = addresses

        return self.ip_addresses

    async def _resolve(self, resolver: aiodns.DNSResolver):
        return await resolver.getaddrinfo(
            self.hostname,
            family=self.family,
            type=socket.SOCK_STREAM,
        )
