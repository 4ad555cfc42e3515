import logging

import pytest

from waypoint_dns.errors import ReferenceFormatError, ResourceLookupError
from waypoint_dns.models.resources import (
    LoadBalancerIngress,
    LoadBalancerStatus,
    ObjectMeta,
    Service,
)
from waypoint_dns.source.targets import (
    ServiceReference,
    TargetResolver,
    parse_service_reference,
)
from waypoint_dns.store.snapshot import Snapshot

TARGET = "external-dns.alpha.kubernetes.io/target"


def lb(*entries):
    ingress = []
    for entry in entries:
        if entry[0].isdigit():
            ingress.append(LoadBalancerIngress(ip=entry))
        else:
            ingress.append(LoadBalancerIngress(hostname=entry))
    return LoadBalancerStatus(ingress=ingress)


def service(namespace, name, *entries, type="LoadBalancer"):
    return Service(
        metadata=ObjectMeta(name=name, namespace=namespace),
        type=type,
        load_balancer=lb(*entries),
    )


@pytest.mark.parametrize(
    "reference,expected",
    [
        ("ns1/svc1", ServiceReference("ns1", "svc1")),
        ("svc1.ns1", ServiceReference("ns1", "svc1")),
        ("svc1", ServiceReference("default", "svc1")),
        ("svc.foo.bar", ServiceReference("foo.bar", "svc")),
        ("ns1/svc.qualified", ServiceReference("ns1", "svc.qualified")),
    ],
)
def test_parse_service_reference(reference, expected):
    assert parse_service_reference(reference) == expected


def test_parse_service_reference_uses_configured_default_namespace():
    assert parse_service_reference("svc1", "ambassador") == ServiceReference(
        "ambassador", "svc1"
    )


@pytest.mark.parametrize("reference", ["a/b/c", "ns/", "/svc", "svc.", ".ns", ""])
def test_parse_service_reference_rejects_malformed(reference):
    with pytest.raises(ReferenceFormatError):
        parse_service_reference(reference)


def test_override_annotation_wins_over_load_balancer():
    resolver = TargetResolver(Snapshot())
    targets = resolver.resolve(
        {TARGET: "1.2.3.4"},
        load_balancer=lb("8.8.8.8", "lb.example.com"),
        service=ServiceReference("default", "missing"),
    )
    assert targets == ["1.2.3.4"]


def test_embedded_load_balancer_lists_ips_and_hostnames_in_order():
    resolver = TargetResolver(Snapshot())
    assert resolver.resolve({}, load_balancer=lb("8.8.8.8", "lb.example.com")) == [
        "8.8.8.8",
        "lb.example.com",
    ]


def test_referenced_service_targets():
    snapshot = Snapshot([service("ns1", "svc1", "1.1.1.1", "2.2.2.2")])
    resolver = TargetResolver(snapshot)
    assert resolver.resolve({}, service=ServiceReference("ns1", "svc1")) == [
        "1.1.1.1",
        "2.2.2.2",
    ]


def test_empty_embedded_status_falls_back_to_service():
    snapshot = Snapshot([service("ns1", "svc1", "1.1.1.1")])
    resolver = TargetResolver(snapshot)
    targets = resolver.resolve(
        {}, load_balancer=LoadBalancerStatus(), service=ServiceReference("ns1", "svc1")
    )
    assert targets == ["1.1.1.1"]


def test_missing_service_is_soft(caplog):
    resolver = TargetResolver(Snapshot())
    with caplog.at_level(logging.WARNING):
        assert resolver.resolve({}, service=ServiceReference("ns1", "gone")) == []
    assert "Service ns1/gone not found" in caplog.text


def test_missing_service_raises_in_strict_mode():
    resolver = TargetResolver(Snapshot(), strict=True)
    with pytest.raises(ResourceLookupError):
        resolver.resolve({}, service=ServiceReference("ns1", "gone"))


def test_non_load_balancer_service_is_rejected_when_required():
    snapshot = Snapshot([service("gloo-system", "proxy", "1.1.1.1", type="NodePort")])
    resolver = TargetResolver(snapshot)
    reference = ServiceReference("gloo-system", "proxy")

    assert resolver.resolve({}, service=reference, require_load_balancer=True) == []
    assert resolver.resolve({}, service=reference) == ["1.1.1.1"]


def test_nothing_to_resolve():
    assert TargetResolver(Snapshot()).resolve({}) == []
