"""Address block parsing and containment checks."""

from __future__ import annotations

import itertools
from collections.abc import Iterable
from ipaddress import IPv4Network, IPv6Network, ip_network

from ssmhost_infra.graph.errors import InvalidRangeError

AddressBlock = IPv4Network | IPv6Network


def parse_block(block: str) -> AddressBlock:
    """Parse ``base/prefix`` notation.

    Raises:
        InvalidRangeError: If the text is not a network address with a prefix
            length, or has host bits set.
    """
    if not isinstance(block, str) or "/" not in block:
        raise InvalidRangeError(str(block), "expected <address>/<prefix length>")
    try:
        return ip_network(block, strict=True)
    except ValueError as exc:
        raise InvalidRangeError(block, str(exc)) from exc


def contains(outer: str, inner: str) -> bool:
    """Return True when ``inner`` lies entirely within ``outer``."""
    outer_net, inner_net = parse_block(outer), parse_block(inner)
    if outer_net.version != inner_net.version:
        return False
    return inner_net.subnet_of(outer_net)  # type: ignore[arg-type]


def overlaps(first: str, second: str) -> bool:
    """Return True when the two blocks share at least one address."""
    first_net, second_net = parse_block(first), parse_block(second)
    if first_net.version != second_net.version:
        return False
    return first_net.overlaps(second_net)


def require_within(parent: str, child: str) -> None:
    """Raise ``InvalidRangeError`` unless ``child`` is contained in ``parent``."""
    if not contains(parent, child):
        raise InvalidRangeError(child, "not contained in parent block", parent=parent)


def require_disjoint(blocks: Iterable[str]) -> None:
    """Raise ``InvalidRangeError`` for the first pair of overlapping blocks."""
    for first, second in itertools.combinations(list(blocks), 2):
        if overlaps(first, second):
            raise InvalidRangeError(second, f"overlaps {first}")
