"""
DynamoDB record gateway: the two input sources of the ISMS export.

All reads from the policy-selection and evidence-metadata tables go
through this class. Services and blueprints never create boto3 clients
themselves.

  - Full-table Scan with ConsistentRead, following LastEvaluatedKey
  - Items converted from the DynamoDB wire format to plain Python values
  - Both tables scanned concurrently (fetch_all)
  - botocore failures wrapped in UpstreamFetchError; retries are left to
    botocore's own retry handler

Testability: pass a stub ``client`` to RecordGateway() in tests instead of
letting it create a real boto3 client lazily.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Any

import boto3
from boto3.dynamodb.types import TypeDeserializer
from botocore.exceptions import BotoCoreError, ClientError

from isms_export.core.exceptions import UpstreamFetchError

logger = logging.getLogger(__name__)

DEFAULT_REGION = "ap-northeast-2"
DEFAULT_POLICY_TABLE = "UserSelectedDocuments"
DEFAULT_EVIDENCE_TABLE = "Evidence_Metadata"

_deserializer = TypeDeserializer()


def _plain(value: Any) -> Any:
    # Decimal → int/float so numeric ISMS ids and reasons stringify cleanly
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def deserialize_item(raw: dict) -> dict:
    """Convert one ``{"attr": {"S": "..."}}`` item into ``{"attr": "..."}``."""
    return {key: _plain(_deserializer.deserialize(value)) for key, value in raw.items()}


class RecordGateway:
    """Reads the policy and evidence tables.

    Usage:
        gateway = RecordGateway(region="ap-northeast-2")
        policies, evidences = gateway.fetch_all()
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        region: str = DEFAULT_REGION,
        policy_table: str = DEFAULT_POLICY_TABLE,
        evidence_table: str = DEFAULT_EVIDENCE_TABLE,
    ) -> None:
        self._client = client
        self.region = region
        self.policy_table = policy_table
        self.evidence_table = evidence_table

    @classmethod
    def from_config(cls, config, client: Any | None = None) -> RecordGateway:
        """Build a gateway from a Flask config mapping."""
        return cls(
            client,
            region=config.get("AWS_REGION", DEFAULT_REGION),
            policy_table=config.get("POLICY_TABLE", DEFAULT_POLICY_TABLE),
            evidence_table=config.get("EVIDENCE_TABLE", DEFAULT_EVIDENCE_TABLE),
        )

    # ── boto3 client ─────────────────────────────────────────────────────────

    @property
    def client(self):
        """Return (or lazily create) the DynamoDB client.

        Credentials come from the standard boto3 chain (env vars, profile,
        instance role).
        """
        if self._client is None:
            self._client = boto3.client("dynamodb", region_name=self.region)
        return self._client

    # ── Reads ────────────────────────────────────────────────────────────────

    def scan_table(self, table_name: str) -> list[dict]:
        """Return every item of ``table_name`` (consistent read, all pages).

        Raises:
            UpstreamFetchError: on any botocore failure.
        """
        items: list[dict] = []
        kwargs: dict[str, Any] = {"TableName": table_name, "ConsistentRead": True}
        pages = 0
        t0 = time.perf_counter()
        try:
            while True:
                resp = self.client.scan(**kwargs)
                pages += 1
                items.extend(deserialize_item(raw) for raw in resp.get("Items", []))
                last_key = resp.get("LastEvaluatedKey")
                if not last_key:
                    break
                kwargs["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as exc:
            logger.error("Scan of %s failed after %d pages: %s", table_name, pages, exc)
            raise UpstreamFetchError(table_name, exc) from exc

        logger.debug(
            "Scanned %s: %d items in %d pages (%.0fms)",
            table_name, len(items), pages, (time.perf_counter() - t0) * 1000,
        )
        return items

    def fetch_policy_records(self) -> list[dict]:
        return self.scan_table(self.policy_table)

    def fetch_evidence_records(self) -> list[dict]:
        return self.scan_table(self.evidence_table)

    def fetch_all(self) -> tuple[list[dict], list[dict]]:
        """Scan both tables concurrently; the first failure is raised."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            policy_future = pool.submit(self.fetch_policy_records)
            evidence_future = pool.submit(self.fetch_evidence_records)
            return policy_future.result(), evidence_future.result()

    def ping(self) -> dict:
        """Cheap connectivity check used by diagnostics and health checks.

        Returns:
            ``{"status": "ok", "latency_ms": ...}`` or
            ``{"status": "error", "detail": ...}``. Never raises.
        """
        t0 = time.perf_counter()
        try:
            self.client.describe_table(TableName=self.policy_table)
        except (ClientError, BotoCoreError) as exc:
            return {"status": "error", "detail": str(exc)}
        return {"status": "ok", "latency_ms": round((time.perf_counter() - t0) * 1000, 1)}
