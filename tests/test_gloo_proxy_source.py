import pytest

from waypoint_dns.errors import ResourceLookupError
from waypoint_dns.models.resources import (
    GlooMetadataSource,
    GlooProxy,
    GlooVirtualHost,
    GlooVirtualService,
    LoadBalancerIngress,
    LoadBalancerStatus,
    ObjectMeta,
    Service,
)
from waypoint_dns.source.pipeline import build_source
from waypoint_dns.store.snapshot import Snapshot

GLOO_NAMESPACE = "gloo-system"


def proxy_service(name, *ips, type="LoadBalancer"):
    return Service(
        metadata=ObjectMeta(name=name, namespace=GLOO_NAMESPACE),
        type=type,
        load_balancer=LoadBalancerStatus(ingress=[LoadBalancerIngress(ip=ip) for ip in ips]),
    )


def internal_proxy():
    return GlooProxy(
        metadata=ObjectMeta(name="internal", namespace=GLOO_NAMESPACE),
        virtual_hosts=[
            GlooVirtualHost(
                domains=["a.test", "b.test"],
                sources=[GlooMetadataSource("*v1.Unknown", "my-unknown-svc", "unknown")],
            ),
            GlooVirtualHost(
                domains=["c.test."],
                sources=[GlooMetadataSource("*v1.VirtualService", "my-internal-svc", "internal")],
            ),
        ],
    )


def internal_virtual_service():
    return GlooVirtualService(
        metadata=ObjectMeta(
            name="my-internal-svc",
            namespace="internal",
            annotations={
                "external-dns.alpha.kubernetes.io/ttl": "42",
                "external-dns.alpha.kubernetes.io/aws-geolocation-country-code": "LU",
                "external-dns.alpha.kubernetes.io/set-identifier": "identifier",
            },
        )
    )


def test_virtual_hosts_use_annotations_of_their_virtual_services():
    snapshot = Snapshot(
        [
            internal_proxy(),
            internal_virtual_service(),
            proxy_service("internal", "203.0.113.3", "203.0.113.1", "203.0.113.2"),
        ]
    )
    endpoints = build_source("gloo-proxy", snapshot).endpoints()

    assert [ep.dnsname for ep in endpoints] == ["a.test", "b.test", "c.test"]
    for ep in endpoints:
        assert ep.targets == ["203.0.113.1", "203.0.113.2", "203.0.113.3"]
        assert ep.labels == {"resource": "proxy/gloo-system/internal"}

    a, b, c = endpoints
    assert (a.record_ttl, a.set_identifier, a.provider_specific) == (0, "", [])
    assert (b.record_ttl, b.set_identifier, b.provider_specific) == (0, "", [])
    assert c.record_ttl == 42
    assert c.set_identifier == "identifier"
    assert c.provider_specific_value("aws/geolocation-country-code") == "LU"


def test_proxy_service_must_be_a_load_balancer():
    snapshot = Snapshot(
        [
            internal_proxy(),
            internal_virtual_service(),
            proxy_service("internal", "203.0.113.1", type="NodePort"),
        ]
    )
    assert build_source("gloo-proxy", snapshot).endpoints() == []


def test_missing_virtual_service_is_soft():
    snapshot = Snapshot([internal_proxy(), proxy_service("internal", "203.0.113.1")])
    endpoints = build_source("gloo-proxy", snapshot).endpoints()
    assert [ep.dnsname for ep in endpoints] == ["a.test", "b.test", "c.test"]
    assert endpoints[2].record_ttl == 0


def test_missing_virtual_service_is_fatal_in_strict_mode():
    snapshot = Snapshot([internal_proxy(), proxy_service("internal", "203.0.113.1")])
    with pytest.raises(ResourceLookupError):
        build_source("gloo-proxy", snapshot, strict=True).endpoints()


def test_only_proxies_in_gloo_namespace_are_listed():
    other = GlooProxy(
        metadata=ObjectMeta(name="internal", namespace="elsewhere"),
        virtual_hosts=[GlooVirtualHost(domains=["x.test"])],
    )
    snapshot = Snapshot([other, proxy_service("internal", "203.0.113.1")])
    assert build_source("gloo-proxy", snapshot).endpoints() == []


def test_custom_gloo_namespace():
    proxy = GlooProxy(
        metadata=ObjectMeta(name="gateway", namespace="gloo"),
        virtual_hosts=[GlooVirtualHost(domains=["x.test"])],
    )
    service = Service(
        metadata=ObjectMeta(name="gateway", namespace="gloo"),
        type="LoadBalancer",
        load_balancer=LoadBalancerStatus(ingress=[LoadBalancerIngress(hostname="lb.test")]),
    )
    source = build_source("gloo-proxy", Snapshot([proxy, service]), gloo_namespace="gloo")
    assert [(ep.dnsname, ep.targets) for ep in source.endpoints()] == [("x.test", ["lb.test"])]


def classified_virtual_service(**extra):
    annotations = {"kubernetes.io/ingress.class": "gloo"}
    annotations.update(extra)
    return GlooVirtualService(
        metadata=ObjectMeta(name="my-internal-svc", namespace="internal", annotations=annotations)
    )


def test_annotation_filter_matches_virtual_service_annotations():
    snapshot = Snapshot(
        [
            internal_proxy(),
            classified_virtual_service(),
            proxy_service("internal", "203.0.113.1"),
        ]
    )
    source = build_source(
        "gloo-proxy", snapshot, annotation_filter="kubernetes.io/ingress.class=gloo"
    )
    assert [ep.dnsname for ep in source.endpoints()] == ["c.test"]


def test_virtual_service_owned_by_other_controller_is_skipped():
    controller_key = "external-dns.alpha.kubernetes.io/controller"
    snapshot = Snapshot(
        [
            internal_proxy(),
            classified_virtual_service(**{controller_key: "other"}),
            proxy_service("internal", "203.0.113.1"),
        ]
    )
    endpoints = build_source("gloo-proxy", snapshot).endpoints()
    assert [ep.dnsname for ep in endpoints] == ["a.test", "b.test"]


def test_missing_proxy_service_is_looked_up_once_per_proxy(caplog):
    snapshot = Snapshot([internal_proxy(), internal_virtual_service()])
    with caplog.at_level("WARNING"):
        assert build_source("gloo-proxy", snapshot).endpoints() == []
    missing = [r for r in caplog.records if "Service gloo-system/internal not found" in r.getMessage()]
    assert len(missing) == 1
