"""
Routing resources read from the cluster snapshot.

These are read-only views over the Kubernetes objects that Waypoint-DNS
derives endpoints from. Each type knows how to build itself from a manifest
document (the dict form of the YAML/JSON object) and exposes the mapping the
FQDN template is rendered against.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

SERVICE_TYPE_LOAD_BALANCER = "LoadBalancer"


@dataclass
class ObjectMeta:
    name: str
    namespace: str = ""
    annotations: Dict[str, str] = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_manifest(cls, data: Optional[dict]) -> "ObjectMeta":
        data = data or {}
        return cls(
            name=data.get("name", ""),
            namespace=data.get("namespace", ""),
            annotations={
                str(k): str(v) for k, v in (data.get("annotations") or {}).items()
            },
            labels={str(k): str(v) for k, v in (data.get("labels") or {}).items()},
        )


@dataclass
class LoadBalancerIngress:
    ip: str = ""
    hostname: str = ""


@dataclass
class LoadBalancerStatus:
    ingress: List[LoadBalancerIngress] = field(default_factory=list)

    def targets(self) -> List[str]:
        """
        List the addresses published by this load balancer.

        Returns:
            List[str]: IP then hostname of each ingress entry, in entry order
        """
        targets = []
        for lb in self.ingress:
            if lb.ip:
                targets.append(lb.ip)
            if lb.hostname:
                targets.append(lb.hostname)
        return targets

    @classmethod
    def from_manifest(cls, status: Optional[dict]) -> "LoadBalancerStatus":
        load_balancer = (status or {}).get("loadBalancer") or {}
        return cls(
            ingress=[
                LoadBalancerIngress(
                    ip=entry.get("ip", ""), hostname=entry.get("hostname", "")
                )
                for entry in load_balancer.get("ingress") or []
            ]
        )


@dataclass
class Resource:
    """
    Base class for every object held in the snapshot.
    """

    KIND = ""

    metadata: ObjectMeta

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def annotations(self) -> Dict[str, str]:
        return self.metadata.annotations

    def template_context(self) -> Dict[str, Any]:
        """
        Mapping the FQDN template is rendered against.

        Go-style references such as ``{{.Name}}`` resolve against these keys.
        """
        return {
            "Name": self.metadata.name,
            "Namespace": self.metadata.namespace,
            "Annotations": dict(self.metadata.annotations),
            "Labels": dict(self.metadata.labels),
            "Kind": self.KIND,
            "Resource": self,
        }


@dataclass
class Service(Resource):
    KIND = "Service"

    type: str = "ClusterIP"
    load_balancer: LoadBalancerStatus = field(default_factory=LoadBalancerStatus)

    @classmethod
    def from_manifest(cls, data: dict) -> "Service":
        return cls(
            metadata=ObjectMeta.from_manifest(data.get("metadata")),
            type=(data.get("spec") or {}).get("type", "ClusterIP"),
            load_balancer=LoadBalancerStatus.from_manifest(data.get("status")),
        )


@dataclass
class HTTPProxy(Resource):
    """Contour HTTPProxy (projectcontour.io/v1)."""

    KIND = "HTTPProxy"

    fqdn: str = ""
    current_status: str = ""
    load_balancer: LoadBalancerStatus = field(default_factory=LoadBalancerStatus)

    @classmethod
    def from_manifest(cls, data: dict) -> "HTTPProxy":
        spec = data.get("spec") or {}
        status = data.get("status") or {}
        return cls(
            metadata=ObjectMeta.from_manifest(data.get("metadata")),
            fqdn=(spec.get("virtualhost") or {}).get("fqdn", ""),
            current_status=status.get("currentStatus", ""),
            load_balancer=LoadBalancerStatus.from_manifest(status),
        )


@dataclass
class IngressRoute(Resource):
    """Contour IngressRoute (contour.heptio.com/v1beta1)."""

    KIND = "IngressRoute"

    fqdn: str = ""
    current_status: str = ""

    @classmethod
    def from_manifest(cls, data: dict) -> "IngressRoute":
        spec = data.get("spec") or {}
        return cls(
            metadata=ObjectMeta.from_manifest(data.get("metadata")),
            fqdn=(spec.get("virtualhost") or {}).get("fqdn", ""),
            current_status=(data.get("status") or {}).get("currentStatus", ""),
        )


@dataclass
class AmbassadorHost(Resource):
    """Ambassador Host (getambassador.io/v2)."""

    KIND = "Host"

    hostname: str = ""

    @classmethod
    def from_manifest(cls, data: dict) -> "AmbassadorHost":
        return cls(
            metadata=ObjectMeta.from_manifest(data.get("metadata")),
            hostname=(data.get("spec") or {}).get("hostname", ""),
        )


@dataclass
class GlooMetadataSource:
    kind: str = ""
    name: str = ""
    namespace: str = ""


@dataclass
class GlooVirtualHost:
    domains: List[str] = field(default_factory=list)
    sources: List[GlooMetadataSource] = field(default_factory=list)


@dataclass
class GlooProxy(Resource):
    """Gloo Proxy (gloo.solo.io/v1); one virtual host list per listener."""

    KIND = "Proxy"

    virtual_hosts: List[GlooVirtualHost] = field(default_factory=list)

    @classmethod
    def from_manifest(cls, data: dict) -> "GlooProxy":
        virtual_hosts = []
        for listener in (data.get("spec") or {}).get("listener") or []:
            http_listener = listener.get("httpListener") or {}
            for vhost in http_listener.get("virtualHosts") or []:
                metadata = vhost.get("metadata") or {}
                virtual_hosts.append(
                    GlooVirtualHost(
                        domains=list(vhost.get("domains") or []),
                        sources=[
                            GlooMetadataSource(
                                kind=src.get("kind", ""),
                                name=src.get("name", ""),
                                namespace=src.get("namespace", ""),
                            )
                            for src in metadata.get("source") or []
                        ],
                    )
                )
        return cls(
            metadata=ObjectMeta.from_manifest(data.get("metadata")),
            virtual_hosts=virtual_hosts,
        )


@dataclass
class GlooVirtualService(Resource):
    """Gloo VirtualService, only its annotations are used."""

    KIND = "VirtualService"

    @classmethod
    def from_manifest(cls, data: dict) -> "GlooVirtualService":
        return cls(metadata=ObjectMeta.from_manifest(data.get("metadata")))


@dataclass
class TCPIngress(Resource):
    """Kong TCPIngress (configuration.konghq.com/v1beta1)."""

    KIND = "TCPIngress"

    hosts: List[str] = field(default_factory=list)
    load_balancer: LoadBalancerStatus = field(default_factory=LoadBalancerStatus)

    @classmethod
    def from_manifest(cls, data: dict) -> "TCPIngress":
        rules = (data.get("spec") or {}).get("rules") or []
        return cls(
            metadata=ObjectMeta.from_manifest(data.get("metadata")),
            hosts=[rule.get("host", "") for rule in rules],
            load_balancer=LoadBalancerStatus.from_manifest(data.get("status")),
        )


RESOURCE_TYPES = {
    cls.KIND: cls
    for cls in (
        Service,
        HTTPProxy,
        IngressRoute,
        AmbassadorHost,
        GlooProxy,
        GlooVirtualService,
        TCPIngress,
    )
}
