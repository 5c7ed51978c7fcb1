from __future__ import annotations

import pytest

from tablequery_py.testkit import ANY, FakeDynamoDBClient, client_error, no_sleep


def test_fake_client_matches_partial_requests() -> None:
    client = FakeDynamoDBClient()
    client.expect("query", {"TableName": "t", "ExpressionAttributeValues": ANY}, response={"Count": 0})

    assert client.query(TableName="t", ExpressionAttributeValues={":v0": {"S": "x"}}, Limit=1) == {"Count": 0}
    assert client.call_count("query") == 1
    assert client.call_count("get_item") == 0
    client.assert_no_pending()


def test_fake_client_reports_mismatches() -> None:
    client = FakeDynamoDBClient()
    client.expect("query", {"TableName": "t", "Key": [{"S": "a"}]})

    with pytest.raises(AssertionError, match="missing key 'Key'"):
        client.query(TableName="t")


def test_fake_client_rejects_unexpected_calls() -> None:
    client = FakeDynamoDBClient()
    with pytest.raises(AssertionError, match="unexpected call"):
        client.get_item(TableName="t")

    client.expect("get_item")
    with pytest.raises(AssertionError, match="expected get_item, got query"):
        client.query(TableName="t")


def test_fake_client_pending_and_validator_callables() -> None:
    seen: list[object] = []
    client = FakeDynamoDBClient()
    client.expect("get_item", seen.append, response={"Item": {}})
    client.expect("get_item")

    client.get_item(TableName="t")
    assert seen == [{"TableName": "t"}]
    with pytest.raises(AssertionError, match="pending"):
        client.assert_no_pending()


def test_client_error_and_no_sleep() -> None:
    err = client_error("ThrottlingException", status=400, operation="GetItem")
    assert err.response["Error"]["Code"] == "ThrottlingException"
    assert err.operation_name == "GetItem"
    assert no_sleep(1.0) is None


def test_fake_client_reports_every_mismatch() -> None:
    client = FakeDynamoDBClient()
    client.expect("query", {"TableName": "t", "Limit": 2, "Select": "COUNT"})

    with pytest.raises(AssertionError) as exc:
        client.query(TableName="x", Limit=2)
    assert "query.TableName: expected 't', got 'x'" in str(exc.value)
    assert "missing key 'Select'" in str(exc.value)
