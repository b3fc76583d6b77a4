# services/dependencies.py
from typing import Any, Dict, List, Optional, Tuple, Type
import asyncio
import time
from concurrent.futures import ThreadPoolExecutor

from core.config import Settings
from core.exceptions import ExternalServiceError, ServiceUnavailableError
from core.logging import logger

# External clients
import boto3
import redis
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from google.cloud import firestore


class ServiceManager:
    # Shared long-lived connections, created once at startup
    settings: Optional[Settings] = None
    firestore: Optional[object] = None
    s3: Optional[object] = None
    redis: Optional[object] = None
    thread_pool: Optional[ThreadPoolExecutor] = None

    @classmethod
    async def _run(cls, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(cls.thread_pool, fn, *args)

    @classmethod
    def _require_db(cls):
        if not cls.firestore:
            raise ServiceUnavailableError("Database is not connected", service="database")
        return cls.firestore

    # --- Firestore document helpers ---
    @classmethod
    async def list_documents(
        cls,
        collection: str,
        filters: Optional[List[Tuple[str, str, Any]]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        db = cls._require_db()
        query = db.collection(collection)
        for field, op, value in filters or []:
            query = query.where(field, op, value)
        if limit:
            query = query.limit(limit)
        docs = await cls._run(lambda: list(query.stream()))
        results = []
        for d in docs:
            obj = d.to_dict() or {}
            obj["id"] = d.id
            results.append(obj)
        return results

    @classmethod
    async def get_document(cls, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        db = cls._require_db()
        snapshot = await cls._run(lambda: db.collection(collection).document(doc_id).get())
        if not snapshot.exists:
            return None
        obj = snapshot.to_dict() or {}
        obj["id"] = snapshot.id
        return obj

    @classmethod
    async def create_document(cls, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        db = cls._require_db()
        ref = db.collection(collection).document()
        await cls._run(ref.set, data)
        return {**data, "id": ref.id}

    @classmethod
    async def update_document(cls, collection: str, doc_id: str, data: Dict[str, Any]) -> bool:
        db = cls._require_db()
        ref = db.collection(collection).document(doc_id)
        snapshot = await cls._run(ref.get)
        if not snapshot.exists:
            return False
        await cls._run(ref.update, data)
        return True

    @classmethod
    async def delete_document(cls, collection: str, doc_id: str) -> bool:
        db = cls._require_db()
        ref = db.collection(collection).document(doc_id)
        snapshot = await cls._run(ref.get)
        if not snapshot.exists:
            return False
        await cls._run(ref.delete)
        return True

    # --- Media storage ---
    @classmethod
    def build_media_url(cls, key: str) -> str:
        settings = cls.settings
        key = key.lstrip("/")
        if settings.aws_s3_base_url:
            return f"{settings.aws_s3_base_url.rstrip('/')}/{key}"
        if settings.aws_s3_endpoint_url:
            return f"{settings.aws_s3_endpoint_url.rstrip('/')}/{settings.aws_s3_bucket}/{key}"
        return f"https://{settings.aws_s3_bucket}.s3.amazonaws.com/{key}"

    @classmethod
    async def upload_media(cls, key: str, data: bytes, content_type: str) -> str:
        if not cls.s3:
            raise ServiceUnavailableError("Media storage is not configured", service="media")
        key = key.lstrip("/")
        start = time.perf_counter()
        try:
            await cls._run(
                lambda: cls.s3.put_object(
                    Bucket=cls.settings.aws_s3_bucket,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                )
            )
        except ClientError as e:
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            logger.log_service_call("s3", "put_object", time.perf_counter() - start, False, key=key)
            raise ExternalServiceError("Media upload rejected", service="media", upstream_status=status) from e
        except BotoCoreError as e:
            logger.log_service_call("s3", "put_object", time.perf_counter() - start, False, key=key)
            raise ExternalServiceError("Media storage unreachable", service="media") from e
        logger.log_service_call(
            "s3", "put_object", time.perf_counter() - start, True, key=key, size=len(data)
        )
        return cls.build_media_url(key)

    # --- Cache ---
    @classmethod
    async def cache_get(cls, key: str) -> Optional[str]:
        if not cls.redis:
            return None
        value = await cls._run(cls.redis.get, key)
        logger.log_cache_operation("get", key, hit=value is not None)
        return value

    @classmethod
    async def cache_setex(cls, key: str, ttl: int, value: str) -> None:
        if not cls.redis:
            return None
        await cls._run(lambda: cls.redis.setex(key, ttl, value))
        logger.log_cache_operation("set", key, ttl=ttl)

    @classmethod
    async def cache_delete(cls, key: str) -> None:
        if not cls.redis:
            return None
        await cls._run(cls.redis.delete, key)
        logger.log_cache_operation("delete", key)

    @classmethod
    async def initialize_all(cls, settings: Settings):
        """Connect every backend. Database and media failures propagate."""
        cls.settings = settings
        logger.info("Initializing services")

        if cls.thread_pool is None:
            cls.thread_pool = ThreadPoolExecutor(max_workers=settings.max_workers)

        async def init_firestore():
            logger.info("Connecting Firestore", project=settings.project_id)
            cls.firestore = firestore.Client(
                project=settings.project_id, database=settings.firestore_database
            )
            await cls._run(lambda: list(cls.firestore.collection("products").limit(1).stream()))

        async def init_media():
            if not settings.media_configured:
                logger.warning("Media storage not configured; uploads disabled")
                return
            logger.info("Connecting media storage", bucket=settings.aws_s3_bucket)
            session = boto3.session.Session()
            cls.s3 = session.client(
                "s3",
                config=Config(s3={"addressing_style": "virtual"}),
                **settings.get_s3_config(),
            )
            await cls._run(lambda: cls.s3.head_bucket(Bucket=settings.aws_s3_bucket))

        async def init_redis():
            if not settings.redis_url:
                logger.info("Redis not configured; cache disabled")
                return
            logger.info("Connecting Redis", url=settings.redis_url)
            try:
                client = redis.from_url(**settings.get_redis_config())
                await cls._run(client.ping)
                cls.redis = client
            except redis.RedisError as e:
                logger.warning("Redis unavailable; cache disabled", error=str(e))
                cls.redis = None

        await asyncio.gather(init_firestore(), init_media(), init_redis())
        logger.info("Services initialized")

    @classmethod
    async def cleanup_all(cls):
        logger.info("Cleaning up services")
        tasks = []
        loop = asyncio.get_running_loop()
        if cls.redis:
            tasks.append(loop.run_in_executor(cls.thread_pool, cls.redis.close))
        if cls.firestore:
            tasks.append(loop.run_in_executor(cls.thread_pool, cls.firestore.close))
        if tasks:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.warning("Service close failed", error=str(result))
        if cls.thread_pool:
            await loop.run_in_executor(None, cls.thread_pool.shutdown, True)
            cls.thread_pool = None
        cls.firestore = cls.s3 = cls.redis = None
        logger.info("Services cleaned up")


def get_service_manager() -> Type[ServiceManager]:
    # Connections live on the class; there is exactly one per process.
    return ServiceManager
