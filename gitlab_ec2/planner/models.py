from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping


@dataclass(frozen=True)
class Ref:
    """An attribute of another resource, known only once it is provisioned."""
    resource: str
    attribute: str = "id"


@dataclass(frozen=True)
class IngressRule:
    port: int
    cidr: str
    description: str
    protocol: str = "tcp"


def iter_refs(value: Any) -> Iterator[Ref]:
    if isinstance(value, Ref):
        yield value
    elif isinstance(value, Mapping):
        for v in value.values():
            yield from iter_refs(v)
    elif isinstance(value, (list, tuple)):
        for v in value:
            yield from iter_refs(v)
    elif hasattr(value, "references"):
        # BootstrapScript and friends carry their own refs
        yield from value.references


@dataclass(frozen=True)
class ResourceDescriptor:
    kind: str
    name: str
    properties: Mapping[str, Any] = field(default_factory=dict)

    @property
    def references(self) -> tuple[Ref, ...]:
        return tuple(iter_refs(self.properties))


@dataclass(frozen=True)
class ResourcePlan:
    """
    Ordered resource descriptors plus the outputs exposed after provisioning.

    Every Ref, in descriptors and outputs alike, must point at a descriptor
    declared earlier in the plan; names are unique.
    """
    resources: tuple[ResourceDescriptor, ...]
    outputs: Mapping[str, str | Ref] = field(default_factory=dict)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for r in self.resources:
            if r.name in seen:
                raise ValueError(f"Duplicate resource name in plan: {r.name!r}")
            for ref in r.references:
                if ref.resource not in seen:
                    raise ValueError(
                        f"Resource {r.name!r} references {ref.resource!r} which is not declared before it"
                    )
            seen.add(r.name)

        for key, ref in iter_output_refs(self.outputs):
            if ref.resource not in seen:
                raise ValueError(f"Output {key!r} references unknown resource {ref.resource!r}")

    def get(self, name: str) -> ResourceDescriptor:
        for r in self.resources:
            if r.name == name:
                return r
        raise KeyError(name)

    def of_kind(self, kind: str) -> list[ResourceDescriptor]:
        return [r for r in self.resources if r.kind == kind]

    @property
    def names(self) -> list[str]:
        return [r.name for r in self.resources]


def iter_output_refs(outputs: Mapping[str, str | Ref]) -> Iterator[tuple[str, Ref]]:
    for key, value in outputs.items():
        if isinstance(value, Ref):
            yield key, value
