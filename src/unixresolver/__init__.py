"""unixresolver: per-hostname name server selection from resolv.conf files."""

from .addresses import DNS_PORT, DnsServerAddresses, DnsServerAddressStream, ServerAddress, build_source
from .errors import ResolverConfigError, ResolverConfigParseError
from .options import ResolvConfOptions, parse_resolv_conf_options, parse_search_domains
from .parser import ResolverConfigParser, parse_files
from .provider import (
    NOOP_PROVIDER,
    DnsServerAddressStreamProvider,
    NoopDnsServerAddressStreamProvider,
    UnixResolverDnsServerAddressStreamProvider,
    load_provider,
    parse_silently,
)

__all__ = [
    "DNS_PORT",
    "DnsServerAddresses",
    "DnsServerAddressStream",
    "DnsServerAddressStreamProvider",
    "NOOP_PROVIDER",
    "NoopDnsServerAddressStreamProvider",
    "ResolverConfigError",
    "ResolverConfigParseError",
    "ResolverConfigParser",
    "ResolvConfOptions",
    "ServerAddress",
    "UnixResolverDnsServerAddressStreamProvider",
    "build_source",
    "load_provider",
    "parse_files",
    "parse_resolv_conf_options",
    "parse_search_domains",
    "parse_silently",
]
