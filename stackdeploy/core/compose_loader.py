"""Compose document loading

Reads the service set declared in a compose file: names, build sources,
startup dependencies, networks and healthchecks.
"""

import re
from pathlib import Path
from typing import Dict, Any, List, Optional

import yaml

from stackdeploy.exceptions import ConfigurationError
from stackdeploy.models.services import (
    ComposeProfile,
    HealthcheckPolicy,
    ServiceDescriptor,
)
from stackdeploy.constants import (
    HEALTHCHECK_DEFAULT_INTERVAL,
    HEALTHCHECK_DEFAULT_RETRIES,
    HEALTHCHECK_DEFAULT_TIMEOUT,
)

DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(us|ms|s|m|h)")
DURATION_UNITS = {"us": 1e-6, "ms": 1e-3, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: Any, default: float) -> float:
    """
    Parse a compose duration ("20s", "1m30s", "500ms") into seconds.

    Bare numbers are taken as seconds.
    """
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    if not text:
        return default

    parts = DURATION_PART.findall(text)
    if not parts or "".join(n + u for n, u in parts) != text:
        raise ConfigurationError(f"Invalid duration: '{value}'")
    return sum(float(number) * DURATION_UNITS[unit] for number, unit in parts)


class ComposeLoader:
    """Parses a compose file into a ComposeProfile"""

    def __init__(self, compose_path: Path):
        self.compose_path = Path(compose_path)
        self.warnings: List[str] = []

    def load(self) -> ComposeProfile:
        """
        Load and validate the compose document.

        Raises:
            ConfigurationError: If the document is unreadable, declares no
                services, references unknown dependencies or has a cycle
        """
        try:
            with open(self.compose_path, "r") as f:
                document = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {self.compose_path.name}", context=str(e)
            )

        raw_services = document.get("services") if isinstance(document, dict) else None
        if not raw_services or not isinstance(raw_services, dict):
            raise ConfigurationError(
                f"No services declared in {self.compose_path.name}"
            )

        services = {
            name: self._parse_service(name, spec or {})
            for name, spec in raw_services.items()
        }
        profile = ComposeProfile(path=self.compose_path, services=services)

        for descriptor in services.values():
            missing = [dep for dep in descriptor.depends_on if dep not in services]
            if missing:
                raise ConfigurationError(
                    f"Service '{descriptor.name}' depends on undeclared service(s): {', '.join(missing)}",
                    context=str(self.compose_path),
                )

        try:
            profile.startup_order()
        except ValueError as e:
            raise ConfigurationError(str(e), context=str(self.compose_path))

        return profile

    def _parse_service(self, name: str, spec: Dict[str, Any]) -> ServiceDescriptor:
        build = spec.get("build")
        if isinstance(build, dict):
            build_context = build.get("context", ".")
        elif build is not None:
            build_context = str(build)
        else:
            build_context = None

        return ServiceDescriptor(
            name=name,
            image=spec.get("image"),
            build_context=build_context,
            depends_on=tuple(self._names(spec.get("depends_on"))),
            networks=tuple(self._names(spec.get("networks"))),
            healthcheck=self._parse_healthcheck(name, spec.get("healthcheck")),
        )

    @staticmethod
    def _names(value: Any) -> List[str]:
        # Both the short (list) and long (mapping) syntax are allowed
        if not value:
            return []
        if isinstance(value, dict):
            return list(value)
        return [str(item) for item in value]

    def _parse_healthcheck(self, service: str, value: Any) -> Optional[HealthcheckPolicy]:
        if not value or not isinstance(value, dict) or value.get("disable"):
            return None

        test = value.get("test", [])
        if isinstance(test, str):
            test = ["CMD-SHELL", test]

        return HealthcheckPolicy(
            test=[str(part) for part in test],
            interval=self._policy_value(
                service, "interval", value, HEALTHCHECK_DEFAULT_INTERVAL, parse_duration
            ),
            timeout=self._policy_value(
                service, "timeout", value, HEALTHCHECK_DEFAULT_TIMEOUT, parse_duration
            ),
            retries=self._policy_value(
                service, "retries", value, HEALTHCHECK_DEFAULT_RETRIES, _parse_retries
            ),
        )

    def _policy_value(self, service: str, key: str, healthcheck: Dict[str, Any], default, parse):
        """
        Parse one healthcheck setting.

        Values that still hold a `${...}` reference are resolved by the
        compose tool at start-up, not here; the default is used instead.
        """
        raw = healthcheck.get(key)
        if isinstance(raw, str) and "${" in raw:
            self.warnings.append(
                f"Healthcheck {key} of '{service}' uses variable interpolation "
                f"({raw}); assuming {default:g}"
            )
            return default
        return parse(raw, default)


def _parse_retries(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid healthcheck retries: '{value}'")


def resolve_compose_file(candidates: List[Path]) -> Optional[Path]:
    """Return the first existing candidate, or None."""
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None
