"""Utility functions for backup/restore operations."""

import hashlib
import io
import json
import re
import zipfile
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .._utils import logger
from ..base import Document

ZIP_MAGIC = b"PK\x03\x04"
PAYLOAD_FORMAT = "storekeeper-backup"


def canonical_json(data: Any) -> bytes:
    """Deterministic JSON encoding used for checksums.

    Keys are sorted and whitespace is fixed, so re-serializing a parsed
    payload yields the same bytes regardless of the file's layout.
    """
    return json.dumps(
        data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    ).encode("utf-8")


def compute_checksum(data: bytes) -> str:
    """Compute SHA-256 checksum of raw bytes.

    Returns:
        SHA-256 checksum as hex string with 'sha256:' prefix
    """
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


def compute_payload_checksum(payload: Dict[str, List[Document]]) -> str:
    """Checksum of a payload over its canonical serialization."""
    return compute_checksum(canonical_json(payload))


def verify_checksum(payload: Dict[str, List[Document]], expected_checksum: str) -> bool:
    """Verify payload checksum.

    Args:
        payload: Parsed payload
        expected_checksum: Expected checksum (with 'sha256:' prefix)

    Returns:
        True if checksum matches, False otherwise
    """
    return compute_payload_checksum(payload) == expected_checksum


def generate_backup_id() -> str:
    """Generate backup ID with timestamp.

    Returns:
        Backup ID in format: snapshot_YYYY-MM-DDTHH-MM-SSZ
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%SZ")
    return f"snapshot_{timestamp}"


def payload_file_name(backup_id: str) -> str:
    return sanitize_file_name(f"backup_{backup_id}.json")


def archive_file_name(backup_id: str) -> str:
    return sanitize_file_name(f"backup_{backup_id}.zip")


def format_backup_size(size_bytes: int) -> str:
    """Human-readable size, e.g. ``1.5 MB``."""
    if size_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    exponent = 0
    while size_bytes >= 1024 ** (exponent + 1) and exponent < len(units) - 1:
        exponent += 1
    value = round(size_bytes / (1024 ** exponent), 2)
    if value == int(value):
        value = int(value)
    return f"{value} {units[exponent]}"


def sanitize_file_name(file_name: str) -> str:
    """Strip path separators and shell-hostile characters from a file name."""
    cleaned = re.sub(r'[/\\?%*:|"<>]', "_", file_name)
    return cleaned.replace("..", "_").strip()


def normalize_document(raw: Any) -> Optional[Document]:
    """Accept ``{"id", "fields"}`` documents and legacy flat ``{"id", **fields}`` ones."""
    if not isinstance(raw, dict) or raw.get("id") in (None, ""):
        return None
    if set(raw) == {"id", "fields"} and isinstance(raw["fields"], dict):
        return Document(id=str(raw["id"]), fields=raw["fields"])
    fields = {key: value for key, value in raw.items() if key != "id"}
    return Document(id=str(raw["id"]), fields=fields)


def is_archive(data: bytes, filename: Optional[str] = None) -> bool:
    if filename and filename.lower().endswith(".zip"):
        return True
    return data[:4] == ZIP_MAGIC


async def create_archive(entries: Dict[str, bytes]) -> bytes:
    """Create a zip archive in memory.

    Args:
        entries: Mapping of archive member name to content

    Returns:
        Archive bytes
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=6) as archive:
        for name, content in entries.items():
            archive.writestr(name, content)

    data = buffer.getvalue()
    logger.info(f"Archive created: {len(entries)} entries, {len(data):,} bytes")
    return data


async def extract_archive(data: bytes) -> Dict[str, bytes]:
    """Read every member of an in-memory zip archive.

    Raises:
        zipfile.BadZipFile: If the data is not a zip archive
    """
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        entries = {
            info.filename: archive.read(info.filename)
            for info in archive.infolist()
            if not info.is_dir()
        }

    logger.debug(f"Archive extracted: {len(entries)} entries")
    return entries


def save_manifest(manifest: Dict[str, Any]) -> bytes:
    """Serialize a manifest dictionary for ``metadata.json``."""
    return json.dumps(manifest, indent=2, default=str).encode("utf-8")


def load_manifest(data: bytes) -> Dict[str, Any]:
    """Parse ``metadata.json`` content."""
    manifest = json.loads(data.decode("utf-8"))
    if not isinstance(manifest, dict):
        raise ValueError("manifest must be a JSON object")
    return manifest
