from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass

import boto3

from tablequery_py import Operator, Order, Table, create_boto3_config


@dataclass(frozen=True)
class Event:
    UserID: str
    Time: int
    Status: str = ""


def _client():
    return boto3.client(
        "dynamodb",
        endpoint_url=os.environ.get("DYNAMODB_ENDPOINT", "http://localhost:8000"),
        region_name=os.environ.get("AWS_REGION", "us-east-1"),
        aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID", "dummy"),
        aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY", "dummy"),
        config=create_boto3_config(),
    )


def main() -> None:
    logging.basicConfig(level=logging.DEBUG if os.environ.get("DEBUG") else logging.INFO)
    client = _client()
    table_name = f"tablequery_py_example_{uuid.uuid4().hex[:12]}"

    client.create_table(
        TableName=table_name,
        KeySchema=[
            {"AttributeName": "UserID", "KeyType": "HASH"},
            {"AttributeName": "Time", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "UserID", "AttributeType": "S"},
            {"AttributeName": "Time", "AttributeType": "N"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    client.get_waiter("table_exists").wait(TableName=table_name)

    try:
        for t, status in ((1, "new"), (2, "done"), (3, "done")):
            client.put_item(
                TableName=table_name,
                Item={"UserID": {"S": "u1"}, "Time": {"N": str(t)}, "Status": {"S": status}},
            )

        table: Table[Event] = Table(table_name, client=client, model=Event)

        print("one:", table.get("UserID", "u1").range("Time", Operator.EQUAL, 2).one())

        done = table.get("UserID", "u1").filter("$Status = ?", "done").order(Order.DESCENDING).all()
        print("filter $Status = 'done':", done)

        print("count:", table.get("UserID", "u1").count())
    finally:
        client.delete_table(TableName=table_name)


if __name__ == "__main__":
    main()
