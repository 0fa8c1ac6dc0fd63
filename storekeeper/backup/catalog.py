"""Backup catalog: manifests persisted in a dedicated store collection."""

from typing import List, Optional

from pydantic import ValidationError

from .._utils import logger
from ..base import BaseDocumentStore
from ..exceptions import ManifestValidationError
from .models import BackupManifest


class BackupCatalog:
    """Persist and list backup manifests, keyed by backup id."""

    def __init__(self, store: BaseDocumentStore, collection: str = "backups"):
        self.store = store
        self.collection = collection

    async def save(self, manifest: BackupManifest) -> None:
        """Validate and persist a manifest.

        Raises:
            ManifestValidationError: If the manifest shape is invalid
        """
        try:
            validated = BackupManifest.model_validate(manifest.model_dump())
        except ValidationError as e:
            raise ManifestValidationError(f"Invalid manifest for {manifest.backup_id}: {e}") from e

        await self.store.set(self.collection, validated.backup_id, validated.model_dump(mode="json"))
        logger.info(f"Cataloged backup {validated.backup_id}")

    async def list(self) -> List[BackupManifest]:
        """All cataloged manifests, newest first. Unreadable records are skipped."""
        manifests = []
        for document in await self.store.list_documents(self.collection):
            try:
                manifests.append(BackupManifest.model_validate(document["fields"]))
            except ValidationError as e:
                logger.warning(f"Skipping invalid manifest {document['id']}: {e}")

        manifests.sort(key=lambda manifest: manifest.created_at, reverse=True)
        return manifests

    async def get(self, backup_id: str) -> Optional[BackupManifest]:
        fields = await self.store.get(self.collection, backup_id)
        if fields is None:
            return None
        try:
            return BackupManifest.model_validate(fields)
        except ValidationError as e:
            raise ManifestValidationError(f"Invalid manifest for {backup_id}: {e}") from e

    async def delete(self, backup_id: str) -> bool:
        """Remove a manifest. Returns False if it did not exist."""
        if await self.store.get(self.collection, backup_id) is None:
            return False
        await self.store.delete(self.collection, backup_id)
        logger.info(f"Deleted backup {backup_id} from catalog")
        return True
