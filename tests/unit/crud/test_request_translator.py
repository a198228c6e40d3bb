from decimal import Decimal

import pytest

from common.errors import BadRequestError, NotFoundError
from crud.models import FilterOperator, Intent
from crud.request_translator import translate_request


@pytest.mark.parametrize(
    "method,path,intent,record_id",
    [
        ("GET", "/customers", Intent.LIST, None),
        ("GET", "/customers/", Intent.LIST, None),
        ("GET", "/customers/5", Intent.GET, "5"),
        ("DELETE", "/customers/5", Intent.DELETE, "5"),
    ],
)
def test_method_and_path_resolve_intent(method, path, intent, record_id):
    """Method plus the presence of an id decides the intent."""
    request = translate_request(method, path)
    assert request.intent == intent
    assert request.table_name == "customers"
    assert request.record_id == record_id


def test_put_and_patch_are_both_updates():
    """PUT and PATCH share partial-update semantics."""
    for method in ("PUT", "PATCH"):
        request = translate_request(method, "/customers/1", body=b'{"FirstName": "Ann"}')
        assert request.intent == Intent.UPDATE
        assert request.rows == ({"FirstName": "Ann"},)


@pytest.mark.parametrize(
    "method,path",
    [("POST", "/customers/1"), ("PUT", "/customers"), ("DELETE", "/customers"), ("HEAD", "/t")],
)
def test_unsupported_method_combinations_are_bad_requests(method, path):
    """Methods that do not fit the collection/item shape are rejected."""
    with pytest.raises(BadRequestError):
        translate_request(method, path, body=b"{}")


@pytest.mark.parametrize("path", ["/", "", "/a/b/c", "/customers//1"])
def test_unroutable_paths_are_not_found(path):
    """Paths that are not /{table} or /{table}/{id} are 404s."""
    with pytest.raises(NotFoundError):
        translate_request("GET", path)


def test_list_parameters_are_parsed():
    """Filters, sort and pagination are split out of the query string."""
    request = translate_request(
        "GET",
        "/invoices",
        [
            ("CustomerId", "1"),
            ("Total[gte]", "5.5"),
            ("BillingAddress[like]", "%Main%"),
            ("InvoiceId[in]", "1,2,3"),
            ("_sort", "-Total,InvoiceDate"),
            ("_limit", "10"),
            ("_offset", "20"),
        ],
    )

    assert [(f.field, f.operator, f.value) for f in request.filters] == [
        ("CustomerId", FilterOperator.EQ, "1"),
        ("Total", FilterOperator.GTE, "5.5"),
        ("BillingAddress", FilterOperator.LIKE, "%Main%"),
        ("InvoiceId", FilterOperator.IN, ["1", "2", "3"]),
    ]
    assert [(s.field, s.descending) for s in request.sort] == [
        ("Total", True),
        ("InvoiceDate", False),
    ]
    assert request.limit == 10
    assert request.offset == 20


@pytest.mark.parametrize(
    "params",
    [
        [("_limit", "-1")],
        [("_limit", "ten")],
        [("_offset", "1"), ("_offset", "2")],
        [("_unknown", "1")],
        [("Total[between]", "1")],
        [("Total[gt", "1")],
        [("InvoiceId[in]", ",")],
        [("_sort", "-")],
    ],
)
def test_malformed_list_parameters_are_bad_requests(params):
    """Reserved parameters and filter operators are validated."""
    with pytest.raises(BadRequestError):
        translate_request("GET", "/invoices", params)


def test_query_parameters_on_single_record_requests_are_rejected():
    """Only collection listings take query parameters."""
    with pytest.raises(BadRequestError):
        translate_request("GET", "/invoices/1", [("_limit", "1")])


def test_create_body_object_and_bulk_array():
    """POST accepts one object or a non-empty array of objects."""
    single = translate_request("POST", "/invoices", body=b'{"Total": 1.10}')
    assert single.is_bulk is False
    assert single.rows == ({"Total": Decimal("1.10")},)

    bulk = translate_request("POST", "/invoices", body=b'[{"Total": 1}, {"Total": 2}]')
    assert bulk.is_bulk is True
    assert len(bulk.rows) == 2


@pytest.mark.parametrize(
    "body",
    [None, b"", b"[]", b"[1, 2]", b'"text"', b"{not json", b'{"Total": NaN}', b"\xff\xfe"],
)
def test_invalid_create_bodies_are_bad_requests(body):
    """Missing, malformed or wrongly-shaped bodies are rejected."""
    with pytest.raises(BadRequestError):
        translate_request("POST", "/invoices", body=body)


def test_update_body_must_be_an_object():
    """Updates never take arrays."""
    with pytest.raises(BadRequestError):
        translate_request("PATCH", "/invoices/1", body=b'[{"Total": 1}]')
