"""
Service Models

Dataclass models for the service set declared in a compose document.
Descriptors are read-only: the orchestrator starts and stops services but
never edits their definitions.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, List

from stackdeploy.constants import (
    HEALTHCHECK_DEFAULT_INTERVAL,
    HEALTHCHECK_DEFAULT_RETRIES,
    HEALTHCHECK_DEFAULT_TIMEOUT,
)


@dataclass(frozen=True)
class HealthcheckPolicy:
    """Readiness probe declared for a service."""

    test: List[str]
    interval: float = HEALTHCHECK_DEFAULT_INTERVAL
    timeout: float = HEALTHCHECK_DEFAULT_TIMEOUT
    retries: int = HEALTHCHECK_DEFAULT_RETRIES

    @property
    def budget_seconds(self) -> float:
        """Worst-case time before the runtime marks the service unhealthy."""
        return self.interval * self.retries

    def __repr__(self) -> str:
        return f"HealthcheckPolicy(interval={self.interval:g}s, retries={self.retries})"


@dataclass(frozen=True)
class ServiceDescriptor:
    """A named service unit with its startup dependencies."""

    name: str
    image: Optional[str] = None
    build_context: Optional[str] = None
    depends_on: tuple = ()
    networks: tuple = ()
    healthcheck: Optional[HealthcheckPolicy] = None

    @property
    def is_built(self) -> bool:
        """Check if the service image is built from local sources."""
        return self.build_context is not None

    def __repr__(self) -> str:
        return f"ServiceDescriptor(name={self.name}, depends_on={list(self.depends_on)})"


@dataclass
class ComposeProfile:
    """The service set selected for one environment."""

    path: Path
    services: Dict[str, ServiceDescriptor] = field(default_factory=dict)

    @property
    def service_names(self) -> List[str]:
        return list(self.services)

    def get(self, name: str) -> Optional[ServiceDescriptor]:
        return self.services.get(name)

    def has_service(self, name: str) -> bool:
        return name in self.services

    def startup_order(self) -> List[str]:
        """
        Services in dependency order (dependencies first).

        The runtime resolves ordering itself; this is used for reporting and
        to validate that the declared graph is acyclic.

        Raises:
            ValueError: If the dependency graph contains a cycle
        """
        order: List[str] = []
        state: Dict[str, str] = {}

        def visit(name: str, trail: List[str]) -> None:
            if state.get(name) == "done":
                return
            if state.get(name) == "visiting":
                cycle = " -> ".join(trail[trail.index(name):] + [name])
                raise ValueError(f"Dependency cycle: {cycle}")
            state[name] = "visiting"
            descriptor = self.services.get(name)
            for dependency in descriptor.depends_on if descriptor else ():
                visit(dependency, trail + [name])
            state[name] = "done"
            order.append(name)

        for name in self.services:
            visit(name, [])
        return order

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "services": {
                name: {"depends_on": list(svc.depends_on)}
                for name, svc in self.services.items()
            },
        }

    def __repr__(self) -> str:
        return f"ComposeProfile(path={self.path.name}, services={len(self.services)})"
