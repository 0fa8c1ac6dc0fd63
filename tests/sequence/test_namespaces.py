"""Tests for identifier namespaces."""

import pytest

from storekeeper.sequence import CUSTOMER_NAMESPACE, T_NAMESPACE, Identifier, get_namespace


class TestExtract:

    @pytest.mark.parametrize("raw, expected", [
        ("101660", 101660),
        (101661, 101661),
        (" 101662 ", 101662),
        ("T-100001", None),
        ("INV-5", None),
        (None, None),
        ("", None),
    ])
    def test_customer(self, raw, expected):
        assert CUSTOMER_NAMESPACE.extract(raw) == expected

    @pytest.mark.parametrize("raw, expected", [
        ("T-100001", 100001),
        ("t-100002", 100002),
        ("T-42", 42),
        ("T-1234567", None),
        ("101660", None),
        ("T-", None),
        (100001, None),
    ])
    def test_t(self, raw, expected):
        assert T_NAMESPACE.extract(raw) == expected


class TestFormat:

    def test_t_zero_pads(self):
        assert T_NAMESPACE.format(42) == "T-000042"
        assert T_NAMESPACE.format(100001) == "T-100001"

    def test_customer_bare(self):
        assert CUSTOMER_NAMESPACE.format(101660) == "101660"

    @pytest.mark.parametrize("namespace, value", [
        (CUSTOMER_NAMESPACE, 101660),
        (CUSTOMER_NAMESPACE, 999999999),
        (T_NAMESPACE, 100001),
        (T_NAMESPACE, 7),
        (T_NAMESPACE, 999999),
    ])
    def test_format_then_parse_is_identity(self, namespace, value):
        assert namespace.extract(namespace.format(value)) == value
        assert namespace.normalize(namespace.identifier(value).formatted) == value


class TestNormalize:

    def test_wrong_prefix_rejected(self):
        with pytest.raises(ValueError):
            T_NAMESPACE.normalize("101660")
        with pytest.raises(ValueError):
            CUSTOMER_NAMESPACE.normalize("T-100001")

    def test_under_padded_accepted(self):
        assert T_NAMESPACE.normalize("T-42") == 42

    def test_identifier_of_other_namespace_rejected(self):
        with pytest.raises(ValueError):
            T_NAMESPACE.normalize(CUSTOMER_NAMESPACE.identifier(101660))

    def test_int_width_checked(self):
        assert T_NAMESPACE.normalize(100001) == 100001
        with pytest.raises(ValueError):
            T_NAMESPACE.normalize(1000000)
        with pytest.raises(ValueError):
            CUSTOMER_NAMESPACE.normalize(-1)


def test_identifier_str():
    identifier = T_NAMESPACE.identifier(100003)
    assert isinstance(identifier, Identifier)
    assert str(identifier) == "T-100003"


def test_source_fields():
    assert T_NAMESPACE.collections == ("corporate-orders", "customer-invoices", "taxedInvoices")
    taxed = T_NAMESPACE.sources[2]
    assert taxed.read({"orderDetails": {"billInvoice": "T-100004"}}) == "T-100004"
    assert taxed.read({"invoiceNumber": "T-100005", "orderDetails": {"billInvoice": "T-1"}}) == "T-100005"


def test_get_namespace():
    assert get_namespace("T") is T_NAMESPACE
    assert get_namespace(CUSTOMER_NAMESPACE) is CUSTOMER_NAMESPACE
    with pytest.raises(ValueError, match="Unknown namespace"):
        get_namespace("orders")


def test_prefixed_namespace_claims_by_prefix():
    assert T_NAMESPACE.claims("T-ABC")
    assert T_NAMESPACE.claims(" t-1234567")
    assert T_NAMESPACE.extract("T-1234567") is None
    assert not T_NAMESPACE.claims("101660")
    assert not T_NAMESPACE.claims(None)
    assert CUSTOMER_NAMESPACE.claims("101660")
    assert not CUSTOMER_NAMESPACE.claims("T-100001")
