"""Resolver options and search list from /etc/resolv.conf.

Brief:
  Reads the ``options`` and ``search``/``domain`` directives that the name
  server parser ignores. Values follow resolv.conf(5): ``options ndots:N
  timeout:N attempts:N`` (other options are ignored) and the ``RES_OPTIONS``
  environment variable overrides whatever the file says.
"""

from __future__ import annotations

import logging
import os
import pathlib
from dataclasses import dataclass, replace
from typing import List, Mapping, Optional, Union

logger = logging.getLogger(__name__)

OPTIONS_ROW_LABEL = "options"
SEARCH_ROW_LABEL = "search"
DOMAIN_ROW_LABEL = "domain"

DEFAULT_NDOTS = 1
DEFAULT_TIMEOUT = 5
DEFAULT_ATTEMPTS = 16

PathLike = Union[str, pathlib.Path]


@dataclass(frozen=True)
class ResolvConfOptions:
    """Brief: Resolver tuning options.

    Inputs (constructor fields):
      - ndots: Dots a name needs before it is tried as absolute first.
      - timeout: Seconds to wait for a server before trying the next.
      - attempts: Number of query attempts.

    Outputs:
      - Immutable options value.
    """

    ndots: int = DEFAULT_NDOTS
    timeout: int = DEFAULT_TIMEOUT
    attempts: int = DEFAULT_ATTEMPTS


_INT_OPTIONS = ("ndots", "timeout", "attempts")


def apply_res_options(options: ResolvConfOptions, text: str) -> ResolvConfOptions:
    """
    Brief: Apply a whitespace separated list of resolver options.

    Inputs:
      - options: Current option values.
      - text: e.g. "ndots:2 timeout:1 rotate".

    Outputs:
      - ResolvConfOptions with recognized options replaced. Unknown options
        and malformed integer values leave the current value untouched.

    Example:
      >>> apply_res_options(ResolvConfOptions(), "ndots:3 attempts:x").ndots
      3
    """
    for opt in text.split():
        name, sep, raw = opt.partition(":")
        if not sep or name not in _INT_OPTIONS:
            continue
        try:
            value = int(raw)
        except ValueError:
            logger.debug("ignoring malformed resolver option %s", opt)
            continue
        options = replace(options, **{name: value})
    return options


def _read_lines(path: PathLike) -> Optional[List[str]]:
    file_path = pathlib.Path(path)
    if not file_path.is_file():
        return None
    with file_path.open("r", encoding="utf-8") as f:
        return [line.strip() for line in f]


def parse_resolv_conf_options(
    path: PathLike = "/etc/resolv.conf",
    environ: Optional[Mapping[str, str]] = None,
) -> ResolvConfOptions:
    """
    Brief: Read ``options`` lines of a resolv.conf file plus RES_OPTIONS.

    Inputs:
      - path: resolv.conf path; a missing file yields the defaults.
      - environ: Environment mapping (defaults to os.environ).

    Outputs:
      - ResolvConfOptions
    """
    options = ResolvConfOptions()
    for line in _read_lines(path) or []:
        parts = line.split(None, 1)
        if len(parts) == 2 and parts[0] == OPTIONS_ROW_LABEL:
            options = apply_res_options(options, parts[1])

    env = os.environ if environ is None else environ
    res_options = env.get("RES_OPTIONS")
    if res_options:
        options = apply_res_options(options, res_options)
    return options


def parse_search_domains(path: PathLike = "/etc/resolv.conf") -> List[str]:
    """
    Brief: Return the search list configured in a resolv.conf file.

    Inputs:
      - path: resolv.conf path; a missing file yields an empty list.

    Outputs:
      - list[str]: entries of every ``search`` line in order, or the last
        ``domain`` value alone when no ``search`` line exists.
    """
    local_domain: Optional[str] = None
    search_domains: List[str] = []
    for line in _read_lines(path) or []:
        parts = line.split(None, 1)
        if len(parts) != 2:
            continue
        label, value = parts
        if label == DOMAIN_ROW_LABEL:
            local_domain = value.split()[0]
        elif label == SEARCH_ROW_LABEL:
            search_domains.extend(value.split())

    if not search_domains and local_domain is not None:
        return [local_domain]
    return search_domains
