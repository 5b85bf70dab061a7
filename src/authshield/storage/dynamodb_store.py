"""DynamoDB-backed state store for multi-process deployments."""

import json, os, time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

import boto3
from botocore.exceptions import ClientError

from authshield.common.constants import StorageConstants
from authshield.common.exceptions import StorageError
from authshield.common.logging import get_logger
from authshield.storage.locks import KeyedLockManager
from authshield.storage.store import Document, StateStore

logger = get_logger(__name__)


class DynamoDBStateStore(StateStore):
    """DynamoDB store: one item per (namespace, key) plus lease-based locks.
    
    Table layout:
        pk = "STATE#{namespace}#{key}", sk = "STATE"
        gsi1_pk = "NS#{namespace}" (index "gsi1_pk-index") for listing keys
        pk = "LOCK#{namespace}#{key}", sk = "LOCK" for cross-process leases
    """
    
    DEFAULT_REGION = "us-east-1"
    STATE_SK = "STATE"
    LOCK_SK = "LOCK"
    
    def __init__(
        self,
        table_name: Optional[str] = None,
        region: Optional[str] = None,
        aws_profile: Optional[str] = None,
        lease_seconds: int = StorageConstants.LOCK_LEASE_SECONDS,
        acquire_attempts: int = StorageConstants.LOCK_ACQUIRE_ATTEMPTS,
        retry_delay_seconds: float = StorageConstants.LOCK_RETRY_DELAY_SECONDS,
        lock_manager: Optional[KeyedLockManager] = None,
    ):
        super().__init__(lock_manager)
        self.table_name = table_name or os.environ.get("AUTHSHIELD_DYNAMODB_TABLE")
        if not self.table_name:
            raise ValueError("AUTHSHIELD_DYNAMODB_TABLE required")
        
        self.region = region or os.environ.get("AWS_REGION", self.DEFAULT_REGION)
        self.lease_seconds = lease_seconds
        self.acquire_attempts = acquire_attempts
        self.retry_delay_seconds = retry_delay_seconds
        
        if aws_profile:
            session = boto3.Session(profile_name=aws_profile)
            self.dynamodb = session.resource("dynamodb", region_name=self.region)
        else:
            self.dynamodb = boto3.resource("dynamodb", region_name=self.region)
        
        self.table = self.dynamodb.Table(self.table_name)
        logger.info(f"DynamoDB state store initialized: {self.table_name} ({self.region})")
    
    def _state_key(self, namespace: str, key: str) -> Dict[str, str]:
        return {"pk": f"STATE#{namespace}#{key}", "sk": self.STATE_SK}
    
    def _lock_key(self, namespace: str, key: str) -> Dict[str, str]:
        return {"pk": f"LOCK#{namespace}#{key}", "sk": self.LOCK_SK}
    
    # ========== LOCKING ==========
    
    @contextmanager
    def lock(self, namespace: str, key: str) -> Iterator[None]:
        with super().lock(namespace, key):
            owner = self._acquire_lease(namespace, key)
            try:
                yield
            finally:
                self._release_lease(namespace, key, owner)
    
    def _acquire_lease(self, namespace: str, key: str) -> str:
        owner = uuid4().hex
        for _ in range(self.acquire_attempts):
            now = int(time.time())
            try:
                self.table.put_item(
                    Item={
                        **self._lock_key(namespace, key),
                        "owner": owner,
                        "expires_at": now + self.lease_seconds,
                    },
                    ConditionExpression="attribute_not_exists(pk) OR expires_at < :now",
                    ExpressionAttributeValues={":now": now},
                )
                return owner
            except ClientError as e:
                if e.response["Error"]["Code"] != "ConditionalCheckFailedException":
                    raise StorageError(f"Lock acquisition failed: {e}", namespace, key) from e
            time.sleep(self.retry_delay_seconds)
        
        raise StorageError("Timed out waiting for state lock", namespace, key)
    
    def _release_lease(self, namespace: str, key: str, owner: str) -> None:
        try:
            self.table.delete_item(
                Key=self._lock_key(namespace, key),
                ConditionExpression="#owner = :owner",
                ExpressionAttributeNames={"#owner": "owner"},
                ExpressionAttributeValues={":owner": owner},
            )
        except ClientError as e:
            # An expired lease may already have been taken over
            logger.warning(f"Lock release failed for {namespace}/{key}: {e}")
    
    # ========== DOCUMENTS ==========
    
    def get(self, namespace: str, key: str) -> Optional[Document]:
        try:
            resp = self.table.get_item(Key=self._state_key(namespace, key), ConsistentRead=True)
        except ClientError as e:
            logger.error(f"get failed: {e}")
            raise StorageError(f"State read failed: {e}", namespace, key) from e
        
        if item := resp.get("Item"):
            try:
                return json.loads(item["document"])
            except (KeyError, TypeError, json.JSONDecodeError) as e:
                raise StorageError(f"Corrupt state item: {e}", namespace, key) from e
        return None
    
    def put(self, namespace: str, key: str, document: Document) -> None:
        item: Dict[str, Any] = {
            **self._state_key(namespace, key),
            "namespace": namespace,
            "state_key": key,
            "gsi1_pk": f"NS#{namespace}",
            "gsi1_sk": key,
            "document": json.dumps(document, default=str),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.table.put_item(Item=item)
        except ClientError as e:
            logger.error(f"put failed: {e}")
            raise StorageError(f"State write failed: {e}", namespace, key) from e
    
    def delete(self, namespace: str, key: str) -> bool:
        try:
            resp = self.table.delete_item(
                Key=self._state_key(namespace, key), ReturnValues="ALL_OLD"
            )
        except ClientError as e:
            logger.error(f"delete failed: {e}")
            raise StorageError(f"State delete failed: {e}", namespace, key) from e
        return bool(resp.get("Attributes"))
    
    def keys(self, namespace: str) -> List[str]:
        keys: List[str] = []
        query_kwargs: Dict[str, Any] = {
            "IndexName": "gsi1_pk-index",
            "KeyConditionExpression": "gsi1_pk = :pk",
            "ExpressionAttributeValues": {":pk": f"NS#{namespace}"},
        }
        try:
            while True:
                resp = self.table.query(**query_kwargs)
                keys.extend(item["state_key"] for item in resp.get("Items", []))
                last_key = resp.get("LastEvaluatedKey")
                if not last_key:
                    break
                query_kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            logger.error(f"keys query failed ({namespace}): {e}")
            raise StorageError(f"State listing failed: {e}", namespace) from e
        return keys
    
    def health_check(self) -> bool:
        try:
            self.table.table_status
            return True
        except ClientError as e:
            logger.error(f"Health check failed: {e}")
            return False
