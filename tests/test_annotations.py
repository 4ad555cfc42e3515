import logging

import pytest

from waypoint_dns.errors import TTLParseError
from waypoint_dns.models.models import ProviderSpecificProperty
from waypoint_dns.source.annotations import (
    hostnames_from_annotations,
    is_dualstack,
    parse_duration,
    parse_ttl,
    provider_specific_from_annotations,
    targets_from_annotations,
    ttl_from_annotations,
)

TTL = "external-dns.alpha.kubernetes.io/ttl"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("10", 10),
        ("10s", 10),
        ("1m", 60),
        ("1m30s", 90),
        ("1.5h", 5400),
        ("2147483647", 2147483647),
    ],
)
def test_parse_ttl_accepts_seconds_and_durations(value, expected):
    assert parse_ttl(value) == expected


@pytest.mark.parametrize("value", ["foo", "", "0", "-5", "10x", "1m ago", "2147483648"])
def test_parse_ttl_rejects_invalid_values(value):
    with pytest.raises(TTLParseError):
        parse_ttl(value)


def test_parse_duration_sub_second_units():
    assert parse_duration("1500ms") == pytest.approx(1.5)


def test_ttl_missing_is_zero():
    assert ttl_from_annotations({}) == 0


def test_ttl_invalid_is_zero_and_logged(caplog):
    with caplog.at_level(logging.WARNING):
        assert ttl_from_annotations({TTL: "abc"}) == 0
    assert "not a valid TTL value" in caplog.text


def test_ttl_duration_annotation():
    assert ttl_from_annotations({TTL: "10s"}) == 10


def test_provider_specific_prefixes_are_normalized():
    annotations = {
        "external-dns.alpha.kubernetes.io/aws-weight": "10",
        "external-dns.alpha.kubernetes.io/aws-geolocation-country-code": "LU",
        "external-dns.alpha.kubernetes.io/scw-priority": "1",
        "external-dns.alpha.kubernetes.io/set-identifier": "blue",
        "unrelated/annotation": "x",
    }
    properties, set_identifier = provider_specific_from_annotations(annotations)

    assert properties == [
        ProviderSpecificProperty("aws/geolocation-country-code", "LU"),
        ProviderSpecificProperty("aws/weight", "10"),
        ProviderSpecificProperty("scw/priority", "1"),
    ]
    assert set_identifier == "blue"


def test_provider_specific_cloudflare_and_alias():
    annotations = {
        "external-dns.alpha.kubernetes.io/cloudflare-proxied": "true",
        "external-dns.alpha.kubernetes.io/alias": "true",
    }
    properties, set_identifier = provider_specific_from_annotations(annotations)

    assert properties == [
        ProviderSpecificProperty("external-dns.alpha.kubernetes.io/cloudflare-proxied", "true"),
        ProviderSpecificProperty("alias", "true"),
    ]
    assert set_identifier == ""


def test_alias_requires_true():
    properties, _ = provider_specific_from_annotations(
        {"external-dns.alpha.kubernetes.io/alias": "yes"}
    )
    assert properties == []


def test_target_annotation_split_on_commas():
    annotations = {"external-dns.alpha.kubernetes.io/target": "1.2.3.4, 5.6.7.8,"}
    assert targets_from_annotations(annotations) == ["1.2.3.4", "5.6.7.8"]


def test_hostname_annotation_split_and_trimmed():
    annotations = {
        "external-dns.alpha.kubernetes.io/hostname": "a.example.org., b.example.org  c.example.org"
    }
    assert hostnames_from_annotations(annotations) == [
        "a.example.org",
        "b.example.org",
        "c.example.org",
    ]


def test_dualstack_annotation():
    assert is_dualstack({"alb.ingress.kubernetes.io/ip-address-type": "dualstack"})
    assert not is_dualstack({"alb.ingress.kubernetes.io/ip-address-type": "ipv4"})
    assert not is_dualstack({})
