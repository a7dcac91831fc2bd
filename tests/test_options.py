"""
Brief: Tests for unixresolver.options (options/search parsing and RES_OPTIONS).

Inputs:
  - write_conf fixture for resolv.conf files

Outputs:
  - None
"""

from unixresolver.options import (
    DEFAULT_ATTEMPTS,
    DEFAULT_NDOTS,
    DEFAULT_TIMEOUT,
    ResolvConfOptions,
    apply_res_options,
    parse_resolv_conf_options,
    parse_search_domains,
)


def test_defaults_when_file_missing(tmp_path):
    """
    Brief: A missing file and empty environment give default options.

    Inputs:
      - non-existent path

    Outputs:
      - None: Asserts defaults
    """
    opts = parse_resolv_conf_options(tmp_path / "missing", environ={})
    assert opts == ResolvConfOptions(DEFAULT_NDOTS, DEFAULT_TIMEOUT, DEFAULT_ATTEMPTS)
    assert (opts.ndots, opts.timeout, opts.attempts) == (1, 5, 16)


def test_options_lines_are_applied_in_order(write_conf):
    """
    Brief: options lines set ndots/timeout/attempts; later lines win.

    Inputs:
      - resolv.conf with two options lines and unrelated directives

    Outputs:
      - None: Asserts parsed values
    """
    text = (
        "nameserver 8.8.8.8\n"
        "options ndots:2 timeout:3 rotate\n"
        "# options ndots:9\n"
        "options attempts:4 ndots:5\n"
    )
    opts = parse_resolv_conf_options(write_conf("resolv.conf", text), environ={})
    assert opts == ResolvConfOptions(ndots=5, timeout=3, attempts=4)


def test_malformed_option_values_keep_previous(write_conf):
    """
    Brief: Non-integer option values are ignored.

    Inputs:
      - options line with a bad ndots value after a good one

    Outputs:
      - None: Asserts the good value survives
    """
    text = "options ndots:3\noptions ndots:lots timeout:\n"
    opts = parse_resolv_conf_options(write_conf("resolv.conf", text), environ={})
    assert opts.ndots == 3
    assert opts.timeout == DEFAULT_TIMEOUT


def test_res_options_environment_overrides_file(write_conf):
    """
    Brief: RES_OPTIONS is applied after the file.

    Inputs:
      - resolv.conf options plus RES_OPTIONS

    Outputs:
      - None: Asserts env value wins, file-only values kept
    """
    path = write_conf("resolv.conf", "options ndots:2 timeout:7\n")
    opts = parse_resolv_conf_options(path, environ={"RES_OPTIONS": "ndots:4"})
    assert opts.ndots == 4
    assert opts.timeout == 7


def test_apply_res_options_ignores_unknown():
    """
    Brief: Unknown option names and flag options are skipped.

    Inputs:
      - "edns0 rotate inet6 debug:1"

    Outputs:
      - None: Asserts options unchanged
    """
    base = ResolvConfOptions()
    assert apply_res_options(base, "edns0 rotate inet6 debug:1") == base


def test_search_domains_from_search_lines(write_conf):
    """
    Brief: All search line entries are returned in order; domain is ignored then.

    Inputs:
      - resolv.conf with domain and two search lines

    Outputs:
      - None: Asserts combined search list
    """
    text = "domain local.example\nsearch a.example b.example\nsearch\tc.example\n"
    assert parse_search_domains(write_conf("resolv.conf", text)) == [
        "a.example",
        "b.example",
        "c.example",
    ]


def test_search_domains_falls_back_to_domain(write_conf):
    """
    Brief: Without search lines the last domain value is the search list.

    Inputs:
      - resolv.conf with two domain lines

    Outputs:
      - None: Asserts single-element list
    """
    text = "domain first.example\nnameserver 10.0.0.1\ndomain second.example\n"
    assert parse_search_domains(write_conf("resolv.conf", text)) == ["second.example"]


def test_search_domains_empty(tmp_path, write_conf):
    """
    Brief: No search/domain lines (or no file) give an empty list.

    Inputs:
      - nameserver-only file; missing file

    Outputs:
      - None: Asserts empty lists
    """
    assert parse_search_domains(write_conf("resolv.conf", "nameserver 1.1.1.1\n")) == []
    assert parse_search_domains(tmp_path / "missing") == []
