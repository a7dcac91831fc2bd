"""Name server endpoints and the address sources built from them.

Brief:
  A ``DnsServerAddresses`` instance wraps a fixed list of ``ServerAddress``
  values and hands out ``DnsServerAddressStream`` iterators. The stream
  decides the order in which servers are tried for a single query:

    - failover: always start from the first configured server.
    - round_robin: every new stream starts one server further along.
    - random: every stream shuffles its own copy of the list.

  Streams never run dry: once the last address has been returned they wrap
  around to the first one again, so callers should bound their iteration
  with ``len(stream)`` or an attempt budget.

Inputs:
  - Lists of ServerAddress values produced by the resolv.conf parser.

Outputs:
  - Immutable address sources safe to share between threads.
"""

from __future__ import annotations

import ipaddress
import random
import threading
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence, Tuple, Union

DNS_PORT = 53

ORDER_FAILOVER = "failover"
ORDER_ROUND_ROBIN = "round_robin"
ORDER_RANDOM = "random"
ADDRESS_ORDERS = (ORDER_RANDOM, ORDER_ROUND_ROBIN, ORDER_FAILOVER)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass(frozen=True)
class ServerAddress:
    """Brief: A DNS server endpoint (IP literal plus port).

    Inputs:
      - host: IPv4/IPv6 address object or literal string.
      - port: UDP/TCP port (defaults to 53).

    Outputs:
      - Immutable, hashable endpoint.

    Example:
      >>> str(ServerAddress("8.8.8.8"))
      '8.8.8.8:53'
      >>> str(ServerAddress("::1", 5353))
      '[::1]:5353'
    """

    host: IPAddress
    port: int = DNS_PORT

    def __post_init__(self) -> None:
        if not isinstance(self.host, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            object.__setattr__(self, "host", ipaddress.ip_address(str(self.host)))
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise TypeError(f"port must be an int, got {self.port!r}")
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port out of range: {self.port}")

    def __str__(self) -> str:
        if self.host.version == 6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    def as_tuple(self) -> Tuple[str, int]:
        """Return a ``(host, port)`` pair suitable for socket APIs."""
        return str(self.host), self.port


class DnsServerAddressStream:
    """Endless iterator over the servers of one address source."""

    def __iter__(self) -> Iterator[ServerAddress]:
        return self

    def __next__(self) -> ServerAddress:  # pragma: no cover - abstract
        raise NotImplementedError

    def __len__(self) -> int:  # pragma: no cover - abstract
        raise NotImplementedError

    def duplicate(self) -> "DnsServerAddressStream":  # pragma: no cover - abstract
        raise NotImplementedError


class _SequentialStream(DnsServerAddressStream):
    def __init__(self, addresses: Tuple[ServerAddress, ...], start: int = 0) -> None:
        self._addresses = addresses
        self._index = start % len(addresses) if addresses else 0

    def __next__(self) -> ServerAddress:
        if not self._addresses:
            raise StopIteration
        addr = self._addresses[self._index]
        self._index = (self._index + 1) % len(self._addresses)
        return addr

    def __len__(self) -> int:
        return len(self._addresses)

    def duplicate(self) -> DnsServerAddressStream:
        return _SequentialStream(self._addresses, self._index)

    def __repr__(self) -> str:
        return f"sequential(index={self._index}, {_format(self._addresses)})"


class _ShuffledStream(DnsServerAddressStream):
    def __init__(self, addresses: Sequence[ServerAddress], shuffle: bool = True) -> None:
        self._addresses: List[ServerAddress] = list(addresses)
        self._index = 0
        if shuffle:
            random.shuffle(self._addresses)

    def __next__(self) -> ServerAddress:
        if not self._addresses:
            raise StopIteration
        addr = self._addresses[self._index]
        self._index += 1
        if self._index >= len(self._addresses):
            # Reshuffle on wrap so consecutive passes differ.
            self._index = 0
            random.shuffle(self._addresses)
        return addr

    def __len__(self) -> int:
        return len(self._addresses)

    def duplicate(self) -> DnsServerAddressStream:
        dup = _ShuffledStream(self._addresses, shuffle=False)
        dup._index = self._index
        return dup

    def __repr__(self) -> str:
        return f"shuffled(index={self._index}, {_format(self._addresses)})"


class DnsServerAddresses:
    """
    Brief: Immutable list of name servers that produces per-query streams.

    Inputs:
      - addresses: Ordered ServerAddress values.

    Outputs:
      - Instance whose ``stream()`` (alias ``open()``) returns a fresh
        DnsServerAddressStream each call.
    """

    order = ORDER_FAILOVER

    def __init__(self, addresses: Iterable[ServerAddress]) -> None:
        self._addresses: Tuple[ServerAddress, ...] = tuple(addresses)

    @property
    def addresses(self) -> Tuple[ServerAddress, ...]:
        return self._addresses

    def stream(self) -> DnsServerAddressStream:
        return _SequentialStream(self._addresses)

    def open(self) -> DnsServerAddressStream:
        return self.stream()

    def __len__(self) -> int:
        return len(self._addresses)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({_format(self._addresses)})"


class SequentialDnsServerAddresses(DnsServerAddresses):
    """Every stream starts at the first configured server."""


class SingletonDnsServerAddresses(DnsServerAddresses):
    """Source over exactly one server; ordering strategies are irrelevant."""


class RotationalDnsServerAddresses(DnsServerAddresses):
    """Each new stream starts one server later than the previous stream."""

    order = ORDER_ROUND_ROBIN

    def __init__(self, addresses: Iterable[ServerAddress]) -> None:
        super().__init__(addresses)
        self._start = 0
        self._lock = threading.Lock()

    def stream(self) -> DnsServerAddressStream:
        if not self._addresses:
            return _SequentialStream(self._addresses)
        with self._lock:
            start = self._start
            self._start = (start + 1) % len(self._addresses)
        return _SequentialStream(self._addresses, start)


class ShuffledDnsServerAddresses(DnsServerAddresses):
    """Each stream walks its own random permutation of the servers."""

    order = ORDER_RANDOM

    def stream(self) -> DnsServerAddressStream:
        return _ShuffledStream(self._addresses)


def build_source(
    addresses: Iterable[ServerAddress], order: str = ORDER_RANDOM
) -> DnsServerAddresses:
    """
    Brief: Build an address source for ``addresses`` using the named order.

    Inputs:
      - addresses: ServerAddress values in configuration order.
      - order: One of "random" (default), "round_robin" or "failover".

    Outputs:
      - DnsServerAddresses: a singleton source when exactly one address is
        given, otherwise the source implementing ``order``.

    Raises:
      - ValueError: for an unknown order name.

    Example:
      >>> src = build_source([ServerAddress("10.0.0.1"), ServerAddress("10.0.0.2")], "failover")
      >>> s = src.stream()
      >>> [str(next(s)) for _ in range(3)]
      ['10.0.0.1:53', '10.0.0.2:53', '10.0.0.1:53']
    """
    addrs = tuple(addresses)
    key = str(order).strip().lower()
    if key not in ADDRESS_ORDERS:
        raise ValueError(
            f"unknown address order {order!r}; expected one of {', '.join(ADDRESS_ORDERS)}"
        )
    if len(addrs) == 1:
        return SingletonDnsServerAddresses(addrs)
    if key == ORDER_ROUND_ROBIN:
        return RotationalDnsServerAddresses(addrs)
    if key == ORDER_RANDOM:
        return ShuffledDnsServerAddresses(addrs)
    return SequentialDnsServerAddresses(addrs)


def _format(addresses: Iterable[ServerAddress]) -> str:
    return "[" + ", ".join(str(a) for a in addresses) + "]"
