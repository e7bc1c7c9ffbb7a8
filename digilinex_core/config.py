from typing import Literal, Optional

from pydantic import BaseModel, Field


class DigilinexConfig(BaseModel):
    """
    Deployment configuration for the DigiLinex core.
    Decouples the services from environment variables.
    """

    # Firebase
    firebase_credentials_path: Optional[str] = Field(
        None, description="Service account JSON; application default credentials when empty"
    )
    firebase_project_id: Optional[str] = Field(None, description="GCP project id (optional)")
    firebase_database_url: Optional[str] = Field(
        None, description="Realtime Database URL; notifications fall back to local logging when empty"
    )

    # Store backend for the mining ledger
    store_backend: Literal["memory", "firestore"] = Field(
        "memory", description="'firestore' for production, 'memory' for local runs and tests"
    )

    # Local fallback notification buffer
    notification_buffer_size: int = Field(100, ge=1, le=10_000)
