"""
=============================================================================
DYNAMODB SERVICE - Daily usage records in Amazon DynamoDB
=============================================================================

Table Schema:
-------------
Table: DailyElectricityUsage
- series (String)         - Partition Key - one series per household meter
- date (String)           - Sort Key      - local calendar date, YYYY-MM-DD
- kwh (Number)            - energy for the day, 3 decimal places
- estimated_cost (Number) - tariff estimate for the day, 2 decimal places
- updated_at (String)     - when the record was last written

Example Item:
{
    "series": "electricity",
    "date": "2024-01-15",
    "kwh": 8.4,
    "estimated_cost": 202.31,
    "updated_at": "2024-01-16T00:05:00+00:00"
}

Why this key layout:
- put_item on an existing (series, date) replaces the item, which gives us
  upsert-by-date for free: re-running a day never creates a duplicate.
- ISO dates sort lexically in date order, so a billing cycle is a single
  Query with `date BETWEEN start AND end`, already sorted ascending.
=============================================================================
"""

# boto3 - AWS SDK for Python
import boto3

# Key - builds key condition expressions for Query
from boto3.dynamodb.conditions import Key

# ClientError - Exception class for AWS API errors
from botocore.exceptions import ClientError

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from backend.lib.usage_core.models import DailyUsageRecord


class DynamoDBUsageStore:
    """
    Usage store backed by a DynamoDB table.

    Usage:
        store = DynamoDBUsageStore(region='ap-northeast-1')
        store.create_table_if_not_exists()
        store.upsert(date(2024, 1, 15), Decimal('8.4'), Decimal('202.31'))
        records = store.query_range(date(2023, 12, 23), date(2024, 1, 22))
    """

    def __init__(self, table_name: str = 'DailyElectricityUsage', series: str = 'electricity',
                 region: str = 'us-east-1', aws_access_key_id: Optional[str] = None,
                 aws_secret_access_key: Optional[str] = None, aws_session_token: Optional[str] = None,
                 dynamodb=None):
        """
        Args:
            table_name: DynamoDB table holding the daily records
            series: partition key value for this household's records
            region / aws_*: credentials passed to boto3 (None lets boto3 use
                            its own credential chain)
            dynamodb: an existing boto3 DynamoDB resource (tests pass a mock)
        """
        self.table_name = table_name
        self.series = series

        # Resource (high-level interface) gives Table objects with put_item/query
        self.dynamodb = dynamodb or boto3.resource(
            'dynamodb',
            region_name=region,
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            aws_session_token=aws_session_token,
        )
        self.table = self.dynamodb.Table(self.table_name)

    def create_table_if_not_exists(self) -> bool:
        """
        Create the table with on-demand billing if it is missing.

        Returns:
            bool: True if the table exists or was created
        """
        try:
            self.dynamodb.meta.client.describe_table(TableName=self.table_name)
            print(f"DynamoDB table '{self.table_name}' exists")
            return True
        except ClientError as e:
            if e.response['Error']['Code'] != 'ResourceNotFoundException':
                print(f"Error checking table: {e}")
                return False

        try:
            table = self.dynamodb.create_table(
                TableName=self.table_name,
                KeySchema=[
                    {'AttributeName': 'series', 'KeyType': 'HASH'},   # Partition key
                    {'AttributeName': 'date', 'KeyType': 'RANGE'},    # Sort key
                ],
                AttributeDefinitions=[
                    {'AttributeName': 'series', 'AttributeType': 'S'},
                    {'AttributeName': 'date', 'AttributeType': 'S'},
                ],
                BillingMode='PAY_PER_REQUEST',
            )
            table.wait_until_exists()
            self.table = table
            print(f"Created DynamoDB table '{self.table_name}'")
            return True
        except ClientError as e:
            print(f"Failed to create table: {e}")
            return False

    def upsert(self, day: date, kwh: Decimal, estimated_cost: Decimal) -> bool:
        """
        Write the record for `day`, replacing any existing one.

        Returns:
            bool: True if successful, False otherwise
        """
        record = DailyUsageRecord.create(day, kwh, estimated_cost)
        try:
            self.table.put_item(
                Item={
                    'series': self.series,
                    'date': record.date.isoformat(),
                    # DynamoDB wants Decimal, never float
                    'kwh': record.kwh,
                    'estimated_cost': record.estimated_cost,
                    'updated_at': datetime.now(timezone.utc).isoformat(),
                }
            )
            return True
        except ClientError as e:
            print(f"Failed to store usage for {record.date}: {e}")
            return False

    def query_range(self, start: date, end: date) -> List[DailyUsageRecord]:
        """
        Records with start <= date <= end, oldest first.
        """
        condition = Key('series').eq(self.series) & Key('date').between(start.isoformat(), end.isoformat())
        records = []
        try:
            response = self.table.query(KeyConditionExpression=condition, ScanIndexForward=True)
            records.extend(self._to_record(item) for item in response.get('Items', []))

            # DynamoDB returns max 1MB of data per query
            while 'LastEvaluatedKey' in response:
                response = self.table.query(
                    KeyConditionExpression=condition,
                    ScanIndexForward=True,
                    ExclusiveStartKey=response['LastEvaluatedKey'],
                )
                records.extend(self._to_record(item) for item in response.get('Items', []))
        except ClientError as e:
            print(f"Failed to query usage {start} ~ {end}: {e}")
            return []
        return records

    @staticmethod
    def _to_record(item) -> DailyUsageRecord:
        return DailyUsageRecord(
            date=date.fromisoformat(item['date']),
            kwh=Decimal(str(item['kwh'])),
            estimated_cost=Decimal(str(item['estimated_cost'])),
        )
