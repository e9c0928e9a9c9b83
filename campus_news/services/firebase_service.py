"""
Firebase service for Firestore, Storage and the read-only user directory
"""

from __future__ import annotations
import asyncio
import json
import logging
import os
from typing import Optional, Dict, Any, List, Iterable, Union
from urllib.parse import urlparse, unquote

import firebase_admin
from firebase_admin import auth as firebase_auth, credentials, firestore

from campus_news.config import settings
from campus_news.models.user import User, firestore_user_to_model

logger = logging.getLogger(__name__)


class FirebaseService:
    """Service for Firebase operations"""

    _instance = None
    _initialized = False

    def __new__(cls):
        """Singleton pattern to ensure only one Firebase instance"""
        if cls._instance is None:
            cls._instance = super(FirebaseService, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        self._db = None

    def _ensure_app(self):
        if not FirebaseService._initialized:
            self._initialize_firebase()
            FirebaseService._initialized = True

    @property
    def db(self):
        """Firestore client, created on first use"""
        self._ensure_app()
        if self._db is None:
            self._db = firestore.client()
        return self._db

    def verify_id_token(self, id_token: str) -> dict:
        """Verify a Firebase ID token; raises ValueError when it is not valid"""
        self._ensure_app()
        try:
            return firebase_auth.verify_id_token(id_token)
        except Exception as e:
            raise ValueError(f"Firebase ID token verification failed: {e}") from e

    def _initialize_firebase(self):
        """Initialize Firebase Admin SDK with credentials"""
        try:
            # Check if already initialized
            firebase_admin.get_app()
            logger.info("Firebase already initialized")
        except ValueError:
            if settings.DEV_MODE and settings.FIREBASE_EMULATOR_HOST:
                # Use emulator for development
                os.environ["FIRESTORE_EMULATOR_HOST"] = settings.FIREBASE_EMULATOR_HOST
                firebase_admin.initialize_app()
                logger.info(
                    f"Firebase initialized with emulator: {settings.FIREBASE_EMULATOR_HOST}")
                return

            if settings.FIREBASE_CREDENTIALS_JSON:
                try:
                    cred = credentials.Certificate(
                        json.loads(settings.FIREBASE_CREDENTIALS_JSON))
                except json.JSONDecodeError as e:
                    logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")
                    raise
            else:
                # Fallback to file path
                cred = credentials.Certificate(
                    settings.FIREBASE_CREDENTIALS_PATH)

            firebase_admin.initialize_app(
                cred, {"storageBucket": settings.FIREBASE_STORAGE_BUCKET}
            )
            logger.info("Firebase Admin SDK initialization successful.")

    # ============================================
    # USER DIRECTORY (read-only)
    # ============================================

    async def get_user_by_uid(self, uid: str) -> Optional[User]:
        """Load a user document, or None when it does not exist or is invalid"""
        doc = await asyncio.to_thread(self.db.collection("users").document(uid).get)
        if not doc.exists:
            return None
        try:
            return firestore_user_to_model(doc.to_dict(), uid)
        except ValueError as e:
            logger.warning(f"Invalid user document {uid}: {e}")
            return None

    async def get_display_names(self, uids: Iterable[str]) -> Dict[str, str]:
        """
        Resolve user ids to display names.

        Unknown ids map to themselves so the author text never drops an author.
        """
        uids = list(dict.fromkeys(uids))
        if not uids:
            return {}

        def _fetch():
            users = self.db.collection("users")
            refs = [users.document(uid) for uid in uids]
            return {
                snap.id: (snap.to_dict() or {}).get("displayName")
                for snap in self.db.get_all(refs)
                if snap.exists
            }

        try:
            found = await asyncio.to_thread(_fetch)
        except Exception as e:
            logger.error(f"Error fetching author names: {e}")
            found = {}
        return {uid: found.get(uid) or uid for uid in uids}

    # ============================================
    # STORAGE HELPERS
    # ============================================

    @staticmethod
    def _blob_path(file_url: str) -> Optional[str]:
        """Map a stored file URL to its object path in the default bucket"""
        parsed = urlparse(file_url)
        if parsed.scheme == "gs":
            return parsed.path.lstrip("/") or None
        if parsed.netloc == "storage.googleapis.com":
            # /<bucket>/<path>
            parts = parsed.path.lstrip("/").split("/", 1)
            return unquote(parts[1]) if len(parts) == 2 else None
        if not parsed.scheme:
            return file_url.lstrip("/") or None
        return None

    async def delete_file(self, file_url: str) -> bool:
        """Best-effort delete of a stored media file. Returns True on success."""
        path = self._blob_path(file_url or "")
        if not path:
            logger.warning(f"Not a storage URL, skipping delete: {file_url}")
            return False
        try:
            from firebase_admin import storage as fb_storage

            def _delete():
                fb_storage.bucket().blob(path).delete()

            await asyncio.to_thread(_delete)
            logger.info(f"Deleted stored file {path}")
            return True
        except Exception as e:
            logger.error(f"Error deleting stored file {path}: {e}")
            return False

    # ============================================
    # GENERIC QUERY OPERATIONS
    # ============================================
    async def query_collection(
        self,
        collection_name: str,
        filters: Optional[List[tuple]] = None,
        order_by: Optional[Union[str, List[tuple]]] = None,
        direction: str = firestore.Query.ASCENDING,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        get_total_count: bool = False
    ) -> tuple[List[tuple[str, Dict[str, Any]]], int]:
        """
        Queries a Firestore collection with filters, ordering, and pagination.

        Args:
            collection_name: The name of the Firestore collection.
            filters: A list of (field, op, value) tuples, or a {field: value}
                     dict which defaults to '==' comparisons.
            order_by: The field to order the results by, or a list of
                      (field, direction) tuples applied in turn.
            direction: The order direction.
            limit: The maximum number of documents to return.
            offset: The number of documents to skip.
            get_total_count: If True, also count all documents matching the filters.

        Returns:
            A tuple of ([(document_id, document_data), ...], total_count).
        """
        query = self.db.collection(collection_name)

        if filters:
            if isinstance(filters, dict):
                filters = [(k, "==", v) for k, v in filters.items()]
            for f in filters:
                if len(f) != 3:
                    raise ValueError(
                        f"Invalid filter format: {f}. Expected (field, op, value)")
                query = query.where(f[0], f[1], f[2])

        def _get_stream_data(q):
            return [(doc.id, doc.to_dict()) for doc in q.stream()]

        total_count = 0
        if get_total_count:
            def _count(q):
                result = q.count().get()
                return int(result[0][0].value)

            total_count = await asyncio.to_thread(_count, query)

        if isinstance(order_by, str):
            order_by = [(order_by, direction)]
        for field, field_direction in order_by or []:
            query = query.order_by(field, direction=field_direction)
        if offset is not None and offset > 0:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)

        docs = await asyncio.to_thread(_get_stream_data, query)
        return docs, total_count


# Global Firebase service instance
firebase_service = FirebaseService()
