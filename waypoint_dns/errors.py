"""
Exceptions raised by Waypoint-DNS.

Construction-time errors (bad selector, bad template, bad static reference)
stop a source from starting. Errors raised while a pass is running are
either pass-fatal or scoped to one resource, see RoutingSource.
"""


class WaypointError(Exception):
    """Base class for all Waypoint-DNS errors."""


class ConfigurationError(WaypointError):
    """A source could not be built from its configuration."""


class ReferenceFormatError(ConfigurationError):
    """A service reference string is not in a recognized form."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"invalid service reference: {reference!r}")


class ResourceLookupError(WaypointError, LookupError):
    """A referenced object is not present in the snapshot."""

    def __init__(self, kind: str, namespace: str, name: str):
        self.kind = kind
        self.namespace = namespace
        self.name = name
        super().__init__(f"{kind} {namespace}/{name} not found")


class TemplateRenderError(WaypointError):
    """The FQDN template failed to render for one resource."""


class TTLParseError(WaypointError, ValueError):
    """A TTL annotation is not a valid number of seconds or duration."""


class PassCancelled(WaypointError):
    """A pass was abandoned before it completed."""
