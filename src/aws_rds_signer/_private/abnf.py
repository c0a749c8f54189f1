# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Host patterns from :rfc:`3986#section-3.2.2`, following the ``rfc3986`` package's
``abnf_regexp.py``."""

import re

# https://tools.ietf.org/html/rfc3986#page-13
# Escape the '*' for use in regular expressions
SUB_DELIMITERS_RE = r"!$&'()\*+,;="
# We need to escape the '-' in this case:
UNRESERVED_RE = r"A-Za-z0-9._~\-"
PCT_ENCODED = "%[A-Fa-f0-9]{2}"

# The pattern for a regular name, e.g. mydb.123456789012.us-east-1.rds.amazonaws.com
REG_NAME = "((?:{}|[{}])+)".format(PCT_ENCODED, SUB_DELIMITERS_RE + UNRESERVED_RE)
# The pattern for an IPv4 address, e.g., 192.168.255.255, 127.0.0.1,
IPv4_RE = r"([0-9]{1,3}\.){3}[0-9]{1,3}"
# Hexadecimal characters used in each piece of an IPv6 address
HEXDIG_RE = "[0-9A-Fa-f]{1,4}"
# Least-significant 32 bits of an IPv6 address
LS32_RE = "({hex}:{hex}|{ipv4})".format(hex=HEXDIG_RE, ipv4=IPv4_RE)
_subs = {"hex": HEXDIG_RE, "ls32": LS32_RE}

variations = [
    #                            6( h16 ":" ) ls32
    "(%(hex)s:){6}%(ls32)s" % _subs,
    #                       "::" 5( h16 ":" ) ls32
    "::(%(hex)s:){5}%(ls32)s" % _subs,
    # [               h16 ] "::" 4( h16 ":" ) ls32
    "(%(hex)s)?::(%(hex)s:){4}%(ls32)s" % _subs,
    # [ *1( h16 ":" ) h16 ] "::" 3( h16 ":" ) ls32
    "((%(hex)s:)?%(hex)s)?::(%(hex)s:){3}%(ls32)s" % _subs,
    # [ *2( h16 ":" ) h16 ] "::" 2( h16 ":" ) ls32
    "((%(hex)s:){0,2}%(hex)s)?::(%(hex)s:){2}%(ls32)s" % _subs,
    # [ *3( h16 ":" ) h16 ] "::"    h16 ":"   ls32
    "((%(hex)s:){0,3}%(hex)s)?::%(hex)s:%(ls32)s" % _subs,
    # [ *4( h16 ":" ) h16 ] "::"              ls32
    "((%(hex)s:){0,4}%(hex)s)?::%(ls32)s" % _subs,
    # [ *5( h16 ":" ) h16 ] "::"              h16
    "((%(hex)s:){0,5}%(hex)s)?::%(hex)s" % _subs,
    # [ *6( h16 ":" ) h16 ] "::"
    "((%(hex)s:){0,6}%(hex)s)?::" % _subs,
]

IPv6_RE = "(({})|({})|({})|({})|({})|({})|({})|({})|({}))".format(*variations)

HOST_RE = "({}|{})".format(REG_NAME, IPv4_RE)

HOST_MATCHER = re.compile("^" + HOST_RE + "$")
IPv4_MATCHER = re.compile("^" + IPv4_RE + "$")
IPv6_MATCHER = re.compile(r"^\[" + IPv6_RE + r"\]$")


def valid_ipv4_host_address(host: str) -> bool:
    """Determine if the given host is a valid IPv4 address."""
    return all(0 <= int(byte, base=10) <= 255 for byte in host.split("."))


def is_port_valid(port: int) -> bool:
    """Determine if the given port is valid."""
    return 0 <= port <= 65535
