"""Change planning between two declared graphs.

Update policy: changing an attribute listed in :data:`IMMUTABLE_ATTRIBUTES`
for the node's type replaces the resource (destroy, then create); changing
any other attribute updates it in place. A replaced resource gets a new
identity, so every dependent that references it from an immutable attribute
is replaced as well, and every dependent that references it from a mutable
attribute is updated.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from enum import StrEnum
from typing import NamedTuple

from ssmhost_infra.graph.models import Node, ResourceGraph, ResourceType
from ssmhost_infra.graph.validate import validate

logger: logging.Logger = logging.getLogger(__name__)

IMMUTABLE_ATTRIBUTES: dict[str, frozenset[str]] = {
    ResourceType.VPC: frozenset({"cidr_block", "instance_tenancy"}),
    ResourceType.SUBNET: frozenset({"vpc_id", "cidr_block", "availability_zone"}),
    ResourceType.INTERNET_GATEWAY: frozenset(),
    ResourceType.ROUTE_TABLE: frozenset({"vpc_id"}),
    ResourceType.ROUTE_TABLE_ASSOCIATION: frozenset({"subnet_id"}),
    ResourceType.SECURITY_GROUP: frozenset({"vpc_id", "name", "description"}),
    ResourceType.IAM_ROLE: frozenset({"name", "path"}),
    ResourceType.IAM_ROLE_POLICY_ATTACHMENT: frozenset({"role", "policy_arn"}),
    ResourceType.IAM_INSTANCE_PROFILE: frozenset({"name", "path"}),
    ResourceType.INSTANCE: frozenset(
        {"ami", "subnet_id", "availability_zone", "associate_public_ip_address", "root_block_device"}
    ),
    ResourceType.VPC_ENDPOINT: frozenset({"vpc_id", "service_name", "vpc_endpoint_type"}),
}


class Action(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"
    NO_OP = "no-op"


@dataclass(frozen=True)
class Change:
    """The planned action for one node and the attributes that drive it."""

    node_id: str
    action: Action
    attributes: tuple[str, ...] = ()


class Step(NamedTuple):
    """One executable provider call: ``create``, ``update`` or ``delete``."""

    node_id: str
    action: Action


@dataclass(frozen=True)
class Plan:
    """Planned changes plus the executable step sequence.

    ``changes`` lists deletions in destruction order of the current graph,
    followed by every desired node in creation order. ``steps`` expands
    replacements into a delete in the destroy phase and a create in the apply
    phase, and omits no-ops.
    """

    changes: tuple[Change, ...]
    steps: tuple[Step, ...]

    def summary(self) -> dict[str, int]:
        counts = Counter(change.action for change in self.changes)
        return {action.value: counts.get(action, 0) for action in Action}

    @property
    def is_empty(self) -> bool:
        return all(change.action is Action.NO_OP for change in self.changes)


def plan(current: ResourceGraph, desired: ResourceGraph) -> Plan:
    """Compute the changes that turn ``current`` into ``desired``.

    Both graphs are validated first, so an invalid declaration fails before
    any change is proposed.
    """
    current_order = validate(current)
    desired_order = validate(desired)

    decided: dict[str, Change] = {}
    for node in desired_order:
        decided[node.id] = _decide(node, current, decided)

    deletions = [
        Change(node.id, Action.DELETE)
        for node in reversed(current_order)
        if node.id not in desired
    ]
    changes = (*deletions, *(decided[node.id] for node in desired_order))

    destroy_phase = [
        Step(node.id, Action.DELETE)
        for node in reversed(current_order)
        if node.id not in desired or decided[node.id].action is Action.REPLACE
    ]
    apply_phase = [
        Step(node.id, Action.UPDATE if decided[node.id].action is Action.UPDATE else Action.CREATE)
        for node in desired_order
        if decided[node.id].action in (Action.CREATE, Action.REPLACE, Action.UPDATE)
    ]

    result = Plan(changes=changes, steps=(*destroy_phase, *apply_phase))
    logger.info("plan_computed", extra=result.summary())
    return result


def _decide(node: Node, current: ResourceGraph, decided: dict[str, Change]) -> Change:
    if node.id not in current:
        return Change(node.id, Action.CREATE)

    immutable = IMMUTABLE_ATTRIBUTES.get(node.type, frozenset())
    changed = set(_changed_attributes(current[node.id], node))
    for reference in node.references():
        upstream = decided.get(reference.target.node_id)
        if upstream is not None and upstream.action is Action.REPLACE:
            changed.add(reference.attribute)
    changed.discard("depends_on")

    if not changed:
        return Change(node.id, Action.NO_OP)
    forcing = sorted(changed & immutable)
    if forcing:
        return Change(node.id, Action.REPLACE, tuple(forcing))
    return Change(node.id, Action.UPDATE, tuple(sorted(changed)))


def _changed_attributes(old: Node, new: Node) -> list[str]:
    names = dict.fromkeys([*old.attributes, *new.attributes])
    return [
        name
        for name in names
        if old.attributes.get(name) != new.attributes.get(name)
    ]
