"""
Target resolution.

Targets come from, in order of precedence: the target override annotation,
the load balancer status embedded in the resource, or the status of a
referenced load balancer service found in the snapshot.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from waypoint_dns.errors import ReferenceFormatError, ResourceLookupError
from waypoint_dns.models.resources import (
    SERVICE_TYPE_LOAD_BALANCER,
    LoadBalancerStatus,
    Service,
)
from waypoint_dns.source.annotations import targets_from_annotations

DEFAULT_NAMESPACE = "default"


@dataclass(frozen=True)
class ServiceReference:
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


def parse_service_reference(
    reference: str, default_namespace: str = DEFAULT_NAMESPACE
) -> ServiceReference:
    """
    Parse a reference to a load balancer service.

    Accepted forms are ``namespace/name``, the legacy ``name.namespace``
    (split on the first dot, so ``svc.foo.bar`` is service ``svc`` in
    namespace ``foo.bar``) and a bare ``name`` in the default namespace.

    Args:
        reference: Reference string
        default_namespace: Namespace used for bare names

    Returns:
        ServiceReference: Namespace and name of the service

    Raises:
        ReferenceFormatError: If the string has more than one '/' or an
            empty component
    """
    parts = reference.split("/")

    if len(parts) == 1:
        name, sep, namespace = reference.partition(".")
        if not sep:
            namespace = default_namespace
        if not name or not namespace:
            raise ReferenceFormatError(reference)
        return ServiceReference(namespace=namespace, name=name)

    if len(parts) == 2 and parts[0] and parts[1]:
        return ServiceReference(namespace=parts[0], name=parts[1])

    raise ReferenceFormatError(reference)


class TargetResolver:
    """
    Resolves the ordered list of targets for one resource.
    """

    def __init__(self, snapshot, strict: bool = False, logger: Optional[logging.Logger] = None):
        """
        Initialize a TargetResolver.

        Args:
            snapshot: Read-only snapshot used to look up services
            strict: Raise instead of logging when a service is missing
            logger: Logger of the owning source
        """
        self.snapshot = snapshot
        self.strict = strict
        self.logger = logger or logging.getLogger("waypoint-dns.source.targets")

    def resolve(
        self,
        annotations: Dict[str, str],
        load_balancer: Optional[LoadBalancerStatus] = None,
        service: Optional[ServiceReference] = None,
        require_load_balancer: bool = False,
    ) -> List[str]:
        """
        Resolve targets for a resource.

        Args:
            annotations: Annotations of the resource
            load_balancer: Load balancer status embedded in the resource
            service: Reference to a load balancer service
            require_load_balancer: Only accept services of type LoadBalancer

        Returns:
            List[str]: Targets, possibly empty
        """
        targets = targets_from_annotations(annotations)
        if targets:
            return targets

        return self.resource_targets(load_balancer, service, require_load_balancer)

    def resource_targets(
        self,
        load_balancer: Optional[LoadBalancerStatus] = None,
        service: Optional[ServiceReference] = None,
        require_load_balancer: bool = False,
    ) -> List[str]:
        """
        Targets of a resource without the override annotation: its embedded
        load balancer status, or else the referenced service.
        """
        if load_balancer is not None:
            targets = load_balancer.targets()
            if targets:
                return targets

        if service is not None:
            return self.targets_from_service(service, require_load_balancer)

        return []

    def targets_from_service(
        self, reference: ServiceReference, require_load_balancer: bool = False
    ) -> List[str]:
        """
        Targets published by a referenced service.

        Raises:
            ResourceLookupError: If the service is missing and strict is set
        """
        try:
            svc = self.snapshot.get(Service.KIND, reference.namespace, reference.name)
        except ResourceLookupError as e:
            if self.strict:
                raise
            self.logger.warning(f"{e}, publishing no targets for it")
            return []

        if require_load_balancer and svc.type != SERVICE_TYPE_LOAD_BALANCER:
            self.logger.warning(
                f"Service {reference} has type {svc.type}, only {SERVICE_TYPE_LOAD_BALANCER} is supported"
            )
            return []

        return svc.load_balancer.targets()
