"""
Per-kind adapters.

Every routing product stores hostnames, status and load balancer details in
a different place. An adapter exposes those pieces through one small
contract so the same pipeline (RoutingSource) can process any kind.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from waypoint_dns.errors import ConfigurationError
from waypoint_dns.models.resources import (
    AmbassadorHost,
    GlooProxy,
    GlooVirtualService,
    HTTPProxy,
    IngressRoute,
    LoadBalancerStatus,
    Resource,
    TCPIngress,
)
from waypoint_dns.source.annotations import AMBASSADOR_SERVICE_ANNOTATION_KEY
from waypoint_dns.source.targets import (
    DEFAULT_NAMESPACE,
    ServiceReference,
    parse_service_reference,
)

DEFAULT_CONTOUR_LOAD_BALANCER = "heptio-contour/contour"
DEFAULT_GLOO_NAMESPACE = "gloo-system"

GLOO_VIRTUAL_SERVICE_SOURCE_KIND = "*v1.VirtualService"

# Looks up a resource in the snapshot; returns None when it is missing
Lookup = Callable[[str, str, str], Optional[Resource]]


@dataclass
class HostGroup:
    """
    Hostnames of a resource that share one annotation map.
    """

    annotations: Dict[str, str]
    hostnames: List[str] = field(default_factory=list)


class KindAdapter:
    """
    Base adapter. Subclasses override the accessors their kind supports.
    """

    name = ""
    resource_type = Resource
    label_kind = ""
    # Whether the hostname annotation and the FQDN template apply to this kind
    hostname_annotation = True
    fqdn_template = True
    # Only accept referenced services of type LoadBalancer
    require_load_balancer = False
    # Selector and controller checks run on each host group instead of the resource
    per_host_annotations = False

    def __init__(self, namespace: str = ""):
        self.namespace = namespace
        self.logger = logging.getLogger(f"waypoint-dns.source.{self.name}")

    def is_valid(self, resource: Resource) -> bool:
        return True

    def native_hostnames(self, resource: Resource) -> List[str]:
        return []

    def host_groups(self, resource: Resource, lookup: Lookup) -> List[HostGroup]:
        return [HostGroup(resource.annotations, self.native_hostnames(resource))]

    def load_balancer(self, resource: Resource) -> Optional[LoadBalancerStatus]:
        return None

    def service_reference(self, resource: Resource) -> Optional[ServiceReference]:
        return None


class HTTPProxyAdapter(KindAdapter):
    """Contour HTTPProxy: spec.virtualhost.fqdn, targets from its own status."""

    name = "httpproxy"
    resource_type = HTTPProxy
    label_kind = "HTTPProxy"

    def is_valid(self, resource: HTTPProxy) -> bool:
        return resource.current_status == "valid"

    def native_hostnames(self, resource: HTTPProxy) -> List[str]:
        return [resource.fqdn] if resource.fqdn else []

    def load_balancer(self, resource: HTTPProxy) -> Optional[LoadBalancerStatus]:
        return resource.load_balancer


class IngressRouteAdapter(KindAdapter):
    """Contour IngressRoute: targets from the shared Contour load balancer service."""

    name = "ingressroute"
    resource_type = IngressRoute
    label_kind = "ingressroute"

    def __init__(self, namespace: str = "", load_balancer_service: str = DEFAULT_CONTOUR_LOAD_BALANCER):
        super().__init__(namespace)
        if load_balancer_service.count("/") != 1:
            raise ConfigurationError(
                f"invalid contour load balancer service (namespace/name) found {load_balancer_service!r}"
            )
        self.load_balancer_service = parse_service_reference(load_balancer_service)

    def is_valid(self, resource: IngressRoute) -> bool:
        return resource.current_status == "valid"

    def native_hostnames(self, resource: IngressRoute) -> List[str]:
        return [resource.fqdn] if resource.fqdn else []

    def service_reference(self, resource: IngressRoute) -> Optional[ServiceReference]:
        return self.load_balancer_service


class AmbassadorHostAdapter(KindAdapter):
    """
    Ambassador Host: only Hosts annotated with the service to publish are
    processed. The annotation accepts ``namespace/name``, ``name.namespace``
    and a bare ``name``.
    """

    name = "ambassador-host"
    resource_type = AmbassadorHost
    label_kind = "host"
    hostname_annotation = False

    def __init__(self, namespace: str = "", default_namespace: str = DEFAULT_NAMESPACE):
        super().__init__(namespace)
        self.default_namespace = default_namespace

    def is_valid(self, resource: AmbassadorHost) -> bool:
        if AMBASSADOR_SERVICE_ANNOTATION_KEY not in resource.annotations:
            self.logger.debug(
                f"Host {resource.namespace}/{resource.name} ignored: no annotation "
                f"{AMBASSADOR_SERVICE_ANNOTATION_KEY!r} found"
            )
            return False
        return True

    def native_hostnames(self, resource: AmbassadorHost) -> List[str]:
        return [resource.hostname] if resource.hostname else []

    def service_reference(self, resource: AmbassadorHost) -> Optional[ServiceReference]:
        reference = resource.annotations.get(AMBASSADOR_SERVICE_ANNOTATION_KEY)
        if reference is None:
            return None
        return parse_service_reference(reference, self.default_namespace)


class GlooProxyAdapter(KindAdapter):
    """
    Gloo Proxy: every virtual host is published with the annotations of the
    VirtualServices it was generated from. Targets come from the service
    named after the proxy in the Gloo namespace.
    """

    name = "gloo-proxy"
    resource_type = GlooProxy
    label_kind = "proxy"
    hostname_annotation = False
    fqdn_template = False
    require_load_balancer = True
    per_host_annotations = True

    def __init__(self, namespace: str = DEFAULT_GLOO_NAMESPACE):
        super().__init__(namespace or DEFAULT_GLOO_NAMESPACE)

    def host_groups(self, resource: GlooProxy, lookup: Lookup) -> List[HostGroup]:
        groups = []
        for vhost in resource.virtual_hosts:
            annotations = {}
            for src in vhost.sources:
                if src.kind != GLOO_VIRTUAL_SERVICE_SOURCE_KIND:
                    continue
                virtual_service = lookup(GlooVirtualService.KIND, src.namespace, src.name)
                if virtual_service is not None:
                    annotations.update(virtual_service.annotations)
            groups.append(HostGroup(annotations, list(vhost.domains)))
        return groups

    def service_reference(self, resource: GlooProxy) -> Optional[ServiceReference]:
        return ServiceReference(namespace=self.namespace, name=resource.name)


class TCPIngressAdapter(KindAdapter):
    """Kong TCPIngress: every spec.rules[].host, targets from its own status."""

    name = "kong-tcpingress"
    resource_type = TCPIngress
    label_kind = "tcpingress"

    def native_hostnames(self, resource: TCPIngress) -> List[str]:
        return [host for host in resource.hosts if host]

    def load_balancer(self, resource: TCPIngress) -> Optional[LoadBalancerStatus]:
        return resource.load_balancer


ADAPTERS = {
    adapter.name: adapter
    for adapter in (
        HTTPProxyAdapter,
        IngressRouteAdapter,
        AmbassadorHostAdapter,
        GlooProxyAdapter,
        TCPIngressAdapter,
    )
}
