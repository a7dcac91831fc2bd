"""Parser for /etc/resolv.conf and /etc/resolver/* style files.

Brief:
  Each file is read line by line through a small state machine
  (``ParseState``) that tracks the domain currently being described, the
  port applied to bare ``nameserver`` lines and the addresses collected
  since the last ``domain`` directive. Collected addresses are committed to
  a shared domain map whenever a ``domain`` directive starts a new section
  and once more at end of file.

  The domain map is first-wins: when two sections (in the same file or in
  different files) describe the same domain, the section parsed first is
  kept and the later one is discarded with a debug log line.

Inputs:
  - Paths to resolver configuration files.

Outputs:
  - DomainMap: dict of domain name -> DnsServerAddresses.

Grammar (per trimmed line):
  - blank lines and lines starting with '#' or ';' are comments
  - nameserver <ip>        (also <ip>.<port>, <ipv4>:<port>, [<ipv6>]:<port>)
  - domain <name>
  - port <number>
  - sortlist ...           (logged and ignored)
  - anything else          (ignored)
"""

from __future__ import annotations

import ipaddress
import logging
import pathlib
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from cachetools import LRUCache, cached

from .addresses import (
    ADDRESS_ORDERS,
    DNS_PORT,
    ORDER_RANDOM,
    DnsServerAddresses,
    IPAddress,
    ServerAddress,
    build_source,
)
from .errors import ResolverConfigError, ResolverConfigParseError

logger = logging.getLogger(__name__)

NAMESERVER_ROW_LABEL = "nameserver"
SORTLIST_ROW_LABEL = "sortlist"
DOMAIN_ROW_LABEL = "domain"
PORT_ROW_LABEL = "port"

_ARGUMENT_LABELS = (NAMESERVER_ROW_LABEL, DOMAIN_ROW_LABEL, PORT_ROW_LABEL)

DomainMap = Dict[str, DnsServerAddresses]
PathLike = Union[str, pathlib.Path]


@dataclass
class ParseState:
    """Brief: Working state for the file currently being parsed.

    Inputs (constructor fields):
      - current_domain: Domain that pending addresses will be committed under.
        Starts as the file's own base name.
      - current_port: Port applied to nameserver lines without an explicit port.
      - pending_addresses: Addresses collected since the last commit.

    Outputs:
      - ParseState instance; discarded once its file has been parsed.
    """

    current_domain: str
    current_port: int = DNS_PORT
    pending_addresses: List[ServerAddress] = field(default_factory=list)


@cached(cache=LRUCache(maxsize=1024), lock=threading.Lock())
def _ip_literal(text: str) -> Optional[IPAddress]:
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        return None


def _parse_port(text: str) -> int:
    """Brief: Parse a decimal port number in the range 0..65535.

    Inputs:
      - text: Candidate port string.

    Outputs:
      - int port.

    Raises:
      - ValueError: when ``text`` is not plain ASCII digits or is out of range.
    """
    text = text.strip()
    if not text or not text.isascii() or not text.isdigit():
        raise ValueError(f"invalid port value: {text!r}")
    port = int(text)
    if port > 65535:
        raise ValueError(f"port out of range: {port}")
    return port


def parse_nameserver_value(value: str, default_port: int = DNS_PORT) -> ServerAddress:
    """
    Brief: Turn the argument of a ``nameserver`` line into a ServerAddress.

    Inputs:
      - value: Address text, e.g. "8.8.8.8", "8.8.8.8.5353", "::1.5353",
        "10.0.0.2:9953" or "[2001:db8::1]:5353".
      - default_port: Port used when the value carries none.

    Outputs:
      - ServerAddress.

    Raises:
      - ValueError: when no valid IP literal (and port) can be extracted.

    Example:
      >>> str(parse_nameserver_value("192.168.1.1.5353"))
      '192.168.1.1:5353'
      >>> str(parse_nameserver_value("::1", 5300))
      '[::1]:5300'
    """
    text = value.strip()
    ip = _ip_literal(text)
    if ip is not None:
        return ServerAddress(ip, default_port)

    if text.startswith("["):
        end = text.find("]")
        ip = _ip_literal(text[1:end]) if end > 1 else None
        if ip is None or ip.version != 6:
            raise ValueError(f"invalid IP value: {value!r}")
        rest = text[end + 1 :]
        if not rest:
            return ServerAddress(ip, default_port)
        if not rest.startswith(":"):
            raise ValueError(f"invalid IP value: {value!r}")
        return ServerAddress(ip, _parse_port(rest[1:]))

    if text.count(":") == 1:
        host, _, port = text.partition(":")
        ip = _ip_literal(host)
        if ip is None:
            raise ValueError(f"invalid IP value: {value!r}")
        return ServerAddress(ip, _parse_port(port))

    # A port may be appended to the address after a final '.'.
    host, sep, port = text.rpartition(".")
    if not sep or not port:
        raise ValueError(f"invalid IP value: {value!r}")
    port_num = _parse_port(port)
    ip = _ip_literal(host)
    if ip is None:
        raise ValueError(f"invalid IP value: {value!r}")
    return ServerAddress(ip, port_num)


def put_if_absent(
    domain_map: DomainMap, domain: str, addresses: DnsServerAddresses
) -> bool:
    """
    Brief: Insert ``addresses`` for ``domain`` unless the domain is already mapped.

    Inputs:
      - domain_map: Map being built.
      - domain: Domain key, compared case-sensitively.
      - addresses: Candidate address source.

    Outputs:
      - bool: True when inserted, False when an earlier entry was kept.
    """
    existing = domain_map.get(domain)
    if existing is not None:
        logger.debug(
            "Domain name %s already maps to addresses %s so new addresses %s will be discarded",
            domain,
            existing,
            addresses,
        )
        return False
    domain_map[domain] = addresses
    return True


class ResolverConfigParser:
    """
    Brief: Parse resolver configuration files into a first-wins domain map.

    Inputs:
      - address_order: Ordering strategy for the address sources built from
        each committed section ("random", "round_robin" or "failover").

    Outputs:
      - Parser whose ``parse()`` returns a fresh DomainMap per call.

    Example:
      >>> parser = ResolverConfigParser(address_order="failover")
      >>> parser.parse([]) == {}
      True
    """

    def __init__(self, address_order: str = ORDER_RANDOM) -> None:
        order = str(address_order).strip().lower()
        if order not in ADDRESS_ORDERS:
            raise ResolverConfigError(
                f"unknown address order {address_order!r}; expected one of {', '.join(ADDRESS_ORDERS)}"
            )
        self.address_order = order

    def parse(self, paths: Iterable[PathLike]) -> DomainMap:
        domain_map: DomainMap = {}
        for path in paths:
            self.parse_file(path, domain_map)
        return domain_map

    def parse_file(self, path: PathLike, domain_map: DomainMap) -> None:
        """
        Brief: Parse one file and commit its sections into ``domain_map``.

        Inputs:
          - path: File to read. Anything that is not a regular file is skipped.
          - domain_map: Map receiving committed sections (first-wins).

        Outputs:
          - None

        Raises:
          - ResolverConfigParseError: on a malformed directive or content
            that is not valid UTF-8.
          - OSError: when the file exists but cannot be read.
        """
        file_path = pathlib.Path(path)
        if not file_path.is_file():
            logger.debug("Skipping %s: not a regular file", file_path)
            return

        logger.debug("Parsing resolver configuration %s", file_path)
        state = ParseState(current_domain=file_path.name)
        line_number = 0
        try:
            with file_path.open("r", encoding="utf-8") as f:
                for line_number, raw_line in enumerate(f, 1):
                    line = raw_line.strip()
                    if not line or line[0] in "#;":
                        continue
                    try:
                        self.process_line(state, line, domain_map)
                    except ValueError as exc:
                        raise ResolverConfigParseError(
                            f"error parsing {file_path} line {line_number}: {exc} (value: {line})",
                            path=str(file_path),
                            line_number=line_number,
                            line=line,
                        ) from exc
        except UnicodeDecodeError as exc:
            # Decoding is buffered, so only the last fully read line is known.
            raise ResolverConfigParseError(
                f"error decoding {file_path} after line {line_number}: {exc}",
                path=str(file_path),
            ) from exc
        self.commit(state, domain_map)

    def process_line(self, state: ParseState, line: str, domain_map: DomainMap) -> None:
        """
        Brief: Apply one trimmed, non-comment line to ``state``.

        Inputs:
          - state: Working state of the current file (mutated).
          - line: Trimmed configuration line.
          - domain_map: Map receiving sections flushed by ``domain``.

        Outputs:
          - None

        Raises:
          - ValueError: when a recognized directive has a missing or bad value.
        """
        parts = line.split(None, 1)
        label = parts[0]
        value = parts[1].strip() if len(parts) > 1 else ""

        if label in _ARGUMENT_LABELS:
            if not value:
                raise ValueError(f"missing argument for label {label}")
            value = value.split()[0]

        if label == NAMESERVER_ROW_LABEL:
            state.pending_addresses.append(
                parse_nameserver_value(value, state.current_port)
            )
        elif label == DOMAIN_ROW_LABEL:
            self.commit(state, domain_map)
            state.current_domain = value
        elif label == PORT_ROW_LABEL:
            state.current_port = _parse_port(value)
        elif label == SORTLIST_ROW_LABEL:
            logger.info(
                "row type %s not supported. ignoring line: %s", SORTLIST_ROW_LABEL, line
            )

    def commit(self, state: ParseState, domain_map: DomainMap) -> None:
        """Flush pending addresses under the current domain and clear them."""
        if state.pending_addresses:
            put_if_absent(
                domain_map,
                state.current_domain,
                build_source(state.pending_addresses, self.address_order),
            )
            state.pending_addresses = []


def parse_files(paths: Iterable[PathLike], *, address_order: str = ORDER_RANDOM) -> DomainMap:
    """
    Brief: Parse ``paths`` in order into a single first-wins DomainMap.

    Inputs:
      - paths: Resolver configuration files; non-regular files are skipped.
      - address_order: Ordering strategy for the built address sources.

    Outputs:
      - DomainMap keyed by domain (or file base name for un-prefixed entries).
    """
    return ResolverConfigParser(address_order).parse(paths)
