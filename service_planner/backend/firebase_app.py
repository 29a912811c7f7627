from __future__ import annotations

"""Firebase Admin bootstrap shared by every Firestore-backed store."""

from typing import Optional
import os

import firebase_admin
from firebase_admin import credentials, firestore
from google.auth.credentials import AnonymousCredentials

from service_planner.logging_utils import get_logger

logger = get_logger(__name__)

_app: Optional[firebase_admin.App] = None
_firestore_client: Optional[firestore.Client] = None


def _project_id() -> Optional[str]:
    return (
        os.getenv("GOOGLE_CLOUD_PROJECT")
        or os.getenv("GCLOUD_PROJECT")
        or os.getenv("PROJECT_ID")
    )


def _credential() -> Optional[object]:
    """Pick credentials: service account file, emulator, or application default."""
    service_account_path = os.getenv("FIREBASE_SERVICE_ACCOUNT_FILE")
    if service_account_path:
        logger.info("firebase_credentials mode=service_account")
        return credentials.Certificate(service_account_path)
    emulator_host = os.getenv("FIRESTORE_EMULATOR_HOST")
    if emulator_host:
        logger.info("firebase_credentials mode=emulator host=%s", emulator_host)
        return AnonymousCredentials()
    logger.info("firebase_credentials mode=application_default")
    return None


def initialize_firebase_app(project_id: Optional[str] = None) -> firebase_admin.App:
    """Initialize Firebase once; ``project_id`` falls back to the environment."""
    global _app
    if _app is not None:
        return _app
    try:
        _app = firebase_admin.get_app()
        return _app
    except ValueError:
        pass
    options = {}
    project_id = project_id or _project_id()
    if project_id:
        options["projectId"] = project_id
    credential = _credential()
    if credential is None:
        _app = firebase_admin.initialize_app(options=options or None)
    else:
        _app = firebase_admin.initialize_app(credential, options or None)
    return _app


def get_firestore_client(project_id: Optional[str] = None) -> firestore.Client:
    """Return the process-wide Firestore client.

    ``FIRESTORE_DATABASE`` selects a named database; the default database is
    used otherwise.
    """
    global _firestore_client
    if _firestore_client is None:
        initialize_firebase_app(project_id)
        database_id = os.getenv("FIRESTORE_DATABASE") or None
        if database_id:
            _firestore_client = firestore.client(database_id=database_id)
        else:
            _firestore_client = firestore.client()
    return _firestore_client
