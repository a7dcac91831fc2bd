"""Per-hostname name server selection backed by resolver configuration files.

Brief:
  ``UnixResolverDnsServerAddressStreamProvider`` reads /etc/resolv.conf and
  the per-domain files of /etc/resolver once, at construction time, and then
  answers "which servers should be asked about this hostname?" for the rest
  of the process lifetime. The parsed state is never modified afterwards, so
  a single instance can be shared freely between threads.

  ``parse_silently`` is the best-effort bootstrap: it never raises and
  falls back to ``NOOP_PROVIDER`` when the system files are unusable.
"""

from __future__ import annotations

import logging
import os
import pathlib
from typing import Iterable, List, Mapping, Optional, Union

from .addresses import ORDER_RANDOM, DnsServerAddresses, DnsServerAddressStream
from .config.logging_config import init_logging
from .config.settings import ResolverSettings, load_settings
from .errors import ResolverConfigError
from .options import ResolvConfOptions, parse_resolv_conf_options, parse_search_domains
from .parser import DomainMap, ResolverConfigParser, put_if_absent

logger = logging.getLogger(__name__)

ETC_RESOLV_CONF = "/etc/resolv.conf"
ETC_RESOLVER_DIR = "/etc/resolver"

PathLike = Union[str, pathlib.Path]


class DnsServerAddressStreamProvider:
    """Interface: map a hostname to the name servers that should resolve it."""

    def name_server_address_stream(
        self, hostname: str
    ) -> Optional[DnsServerAddressStream]:  # pragma: no cover - abstract
        raise NotImplementedError


class NoopDnsServerAddressStreamProvider(DnsServerAddressStreamProvider):
    """Provider that never overrides the caller's own name server choice."""

    def name_server_address_stream(self, hostname: str) -> Optional[DnsServerAddressStream]:
        return None

    def __repr__(self) -> str:
        return "NoopDnsServerAddressStreamProvider()"


NOOP_PROVIDER = NoopDnsServerAddressStreamProvider()


class UnixResolverDnsServerAddressStreamProvider(DnsServerAddressStreamProvider):
    """
    Brief: Resolve name servers from resolv.conf plus per-domain override files.

    Inputs:
      - resolv_conf: Primary file (e.g. /etc/resolv.conf). Entries listed before
        any ``domain`` directive become the default servers; later sections
        add domain overrides.
      - resolver_files: Override files (e.g. every file in /etc/resolver). Each
        file name is the domain its leading entries apply to. These take
        priority over domain sections of ``resolv_conf``.
      - address_order: Ordering strategy of each address source
        ("random", "round_robin" or "failover").

    Outputs:
      - Immutable provider.

    Raises:
      - ResolverConfigError: when neither input is supplied.
      - ResolverConfigParseError: on malformed file content.
      - OSError: when a present file cannot be read.

    Example:
      >>> provider = UnixResolverDnsServerAddressStreamProvider("/etc/resolv.conf")  # doctest: +SKIP
      >>> provider.resolve_servers_for("www.example.com")  # doctest: +SKIP
    """

    def __init__(
        self,
        resolv_conf: Optional[PathLike] = None,
        resolver_files: Optional[Iterable[PathLike]] = None,
        *,
        address_order: str = ORDER_RANDOM,
    ) -> None:
        files: List[PathLike] = list(resolver_files or [])
        if resolv_conf is None and not files:
            raise ResolverConfigError("no files to parse")

        parser = ResolverConfigParser(address_order)
        default: Optional[DnsServerAddresses] = None
        if files:
            domain_map = parser.parse(files)
            if resolv_conf is not None:
                resolv_conf_map = parser.parse([resolv_conf])
                default = resolv_conf_map.pop(pathlib.Path(resolv_conf).name, None)
                for domain, addresses in resolv_conf_map.items():
                    put_if_absent(domain_map, domain, addresses)
        else:
            domain_map = parser.parse([resolv_conf])
            default = domain_map.pop(pathlib.Path(resolv_conf).name, None)

        self._domain_map: DomainMap = domain_map
        self._default: Optional[DnsServerAddresses] = default
        if resolv_conf is not None:
            self._options = parse_resolv_conf_options(resolv_conf)
            self._search_domains: List[str] = parse_search_domains(resolv_conf)
        else:
            self._options = ResolvConfOptions()
            self._search_domains = []
        logger.debug(
            "Resolver configuration loaded: default=%s, %d domain override(s)",
            default,
            len(domain_map),
        )

    @classmethod
    def from_paths(
        cls,
        resolv_conf: Optional[PathLike] = ETC_RESOLV_CONF,
        resolver_dir: Optional[PathLike] = ETC_RESOLVER_DIR,
        *,
        address_order: str = ORDER_RANDOM,
    ) -> "UnixResolverDnsServerAddressStreamProvider":
        """
        Brief: Build a provider from a primary file and an override directory.

        Inputs:
          - resolv_conf: Primary file path or None.
          - resolver_dir: Directory whose regular files are override files
            (taken in name order), or None. A missing directory adds nothing.
          - address_order: Ordering strategy for address sources.

        Outputs:
          - UnixResolverDnsServerAddressStreamProvider
        """
        return cls(
            resolv_conf,
            list_resolver_files(resolver_dir) if resolver_dir is not None else None,
            address_order=address_order,
        )

    @property
    def default_addresses(self) -> Optional[DnsServerAddresses]:
        return self._default

    def domains(self) -> List[str]:
        return sorted(self._domain_map)

    @property
    def options(self) -> ResolvConfOptions:
        """ndots/timeout/attempts from the primary file and RES_OPTIONS."""
        return self._options

    @property
    def search_domains(self) -> List[str]:
        return list(self._search_domains)

    def resolve_servers_for(self, hostname: str) -> Optional[DnsServerAddresses]:
        """
        Brief: Find the address source for ``hostname``.

        Inputs:
          - hostname: Name being resolved, matched verbatim (case-sensitive).

        Outputs:
          - DnsServerAddresses of the most specific matching domain, else the
            default source, else None.

        Notes:
          - The name is tried as given, then with its leftmost label removed,
            and so on. Once no dot remains after the first character (or the
            only dot left is a trailing one) the default is returned.

        Example:
          - with an override for "example.com", "a.b.example.com" checks
            "a.b.example.com", "b.example.com", "example.com" and matches.
        """
        while True:
            i = hostname.find(".", 1)
            if i < 0 or i == len(hostname) - 1:
                return self._default

            addresses = self._domain_map.get(hostname)
            if addresses is not None:
                return addresses

            hostname = hostname[i + 1 :]

    def name_server_address_stream(self, hostname: str) -> Optional[DnsServerAddressStream]:
        addresses = self.resolve_servers_for(hostname)
        return addresses.stream() if addresses is not None else None

    def may_override_name_servers(self) -> bool:
        """Return True when this provider knows at least one name server."""
        if self._domain_map:
            return True
        if self._default is None:
            return False
        return next(self._default.stream(), None) is not None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(default={self._default!r}, "
            f"domains={self.domains()!r})"
        )


def list_resolver_files(resolver_dir: PathLike) -> List[pathlib.Path]:
    """
    Brief: List the regular files of an /etc/resolver style directory.

    Inputs:
      - resolver_dir: Directory path.

    Outputs:
      - list[pathlib.Path] sorted by name; empty when the directory is missing.

    Raises:
      - OSError: when the directory exists but cannot be listed.
    """
    directory = pathlib.Path(resolver_dir)
    if not directory.is_dir():
        return []
    return sorted(
        (p for p in directory.iterdir() if p.is_file()), key=lambda p: p.name
    )


def parse_silently(
    resolv_conf: Optional[PathLike] = ETC_RESOLV_CONF,
    resolver_dir: Optional[PathLike] = ETC_RESOLVER_DIR,
    *,
    address_order: str = ORDER_RANDOM,
) -> DnsServerAddressStreamProvider:
    """
    Brief: Best-effort provider for the host's resolver configuration.

    Inputs:
      - resolv_conf: Primary file path (default /etc/resolv.conf).
      - resolver_dir: Override directory (default /etc/resolver).
      - address_order: Ordering strategy for address sources.

    Outputs:
      - The parsed provider when it knows at least one name server, otherwise
        NOOP_PROVIDER. Never raises.
    """
    try:
        provider = UnixResolverDnsServerAddressStreamProvider.from_paths(
            resolv_conf, resolver_dir, address_order=address_order
        )
    except Exception:
        logger.debug(
            "failed to parse %s and/or %s", resolv_conf, resolver_dir, exc_info=True
        )
        return NOOP_PROVIDER
    return provider if provider.may_override_name_servers() else NOOP_PROVIDER


def provider_from_settings(settings: ResolverSettings) -> DnsServerAddressStreamProvider:
    """
    Brief: Build the bootstrap provider described by a ResolverSettings object.

    Inputs:
      - settings: unixresolver.config.settings.ResolverSettings instance.

    Outputs:
      - DnsServerAddressStreamProvider (possibly NOOP_PROVIDER).
    """
    resolv_conf = settings.resolv_conf
    resolver_dir = settings.resolver_dir
    if resolv_conf:
        resolv_conf = os.path.expanduser(resolv_conf)
    if resolver_dir:
        resolver_dir = os.path.expanduser(resolver_dir)
    return parse_silently(
        resolv_conf or None,
        resolver_dir or None,
        address_order=settings.address_order,
    )


def load_provider(
    config_path: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    configure_logging: bool = True,
) -> DnsServerAddressStreamProvider:
    """
    Brief: Load settings, optionally initialise logging and build the provider.

    Inputs:
      - config_path: Optional YAML settings file.
      - environ: Environment mapping for UNIXRESOLVER_* overrides.
      - configure_logging: When True and settings carry a logging mapping,
        pass it to init_logging.

    Outputs:
      - DnsServerAddressStreamProvider (possibly NOOP_PROVIDER).

    Raises:
      - ResolverConfigError: when the settings themselves are invalid. Problems
        with the resolver files are absorbed by parse_silently.
    """
    settings = load_settings(config_path, environ=environ)
    if configure_logging and settings.logging:
        init_logging(settings.logging)
    return provider_from_settings(settings)
