"""Deterministic serialization for tagdiff."""

import hashlib
import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from .chain import ChangeKind, FileChange
from .compose import ComposedChangeSet
from .config import SiteConfig
from .versions import Tag

logger = logging.getLogger(__name__)


class DeterministicSerializer:
    """Handles deterministic JSON serialization with stable ordering."""

    def __init__(self, config: SiteConfig):
        """Initialize with configuration."""
        self.config = config

    def serialize_change(self, change: FileChange) -> Dict[str, Any]:
        """Serialize a single file change."""
        return {
            "path": change.path,
            "old_path": change.old_path,
            "kind": change.kind.value,
        }

    def serialize_change_set(self, change_set: ComposedChangeSet) -> Dict[str, Any]:
        """Serialize a composed change set with per-kind counts."""
        counts = {kind.value: 0 for kind in ChangeKind}
        for change in change_set.changes:
            counts[change.kind.value] += 1

        changes = [self.serialize_change(change) for change in change_set.changes]
        changes.sort(key=self._change_sort_key)
        return {
            "from_tag": change_set.from_tag,
            "to_tag": change_set.to_tag,
            "changes": changes,
            "counts": counts,
        }

    def serialize_tags(self, tags: Iterable[Tag]) -> List[Dict[str, Any]]:
        """Serialize tags, newest first."""
        ordered = sorted(tags, key=lambda t: (t.ordinal, t.name), reverse=True)
        return [
            {"name": tag.name, "ordinal": tag.ordinal, "commit_id": tag.commit_id}
            for tag in ordered
        ]

    def serialize_manifest(
        self,
        tags: Iterable[Tag],
        pair_count: int,
        failed_pairs: Optional[List[str]] = None,
        git_version: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Serialize the summary of a generation run, with checksum."""
        provenance = self.config.to_provenance_dict()
        if git_version:
            provenance["git_version"] = git_version

        payload = {
            "provenance": provenance,
            "tags": self.serialize_tags(tags),
            "pair_count": pair_count,
            "failed_pairs": sorted(failed_pairs or []),
        }

        checksum = self._compute_checksum(payload)
        payload["provenance"]["checksum"] = checksum

        logger.debug("Manifest serialized", extra={"checksum": checksum})
        return payload

    def _change_sort_key(self, change_data: Dict[str, Any]) -> tuple:
        """Generate sort key for change ordering."""
        return (change_data.get("path", ""), change_data.get("kind", ""))

    def _normalize_structure(self, obj: Any) -> Any:
        """Return a copy of the object with deterministic ordering applied."""
        if isinstance(obj, dict):
            normalized: Dict[str, Any] = {}
            for key, value in obj.items():
                normalized_value = self._normalize_structure(value)
                if key == "changes" and isinstance(normalized_value, list):
                    normalized_value = sorted(normalized_value, key=self._change_sort_key)
                elif key == "failed_pairs" and isinstance(normalized_value, list):
                    normalized_value = sorted(normalized_value)
                normalized[key] = normalized_value
            return normalized
        if isinstance(obj, list):
            return [self._normalize_structure(item) for item in obj]
        return obj

    def _compute_checksum(self, payload: Dict[str, Any]) -> str:
        """Compute SHA-256 checksum of the payload."""
        payload_copy = self._deep_copy_without_checksum(payload)
        json_bytes = self._to_deterministic_json_bytes(payload_copy)
        return hashlib.sha256(json_bytes).hexdigest()

    def _deep_copy_without_checksum(self, obj: Any) -> Any:
        """Deep copy object, removing checksum field from provenance."""
        if isinstance(obj, dict):
            result = {}
            for key, value in obj.items():
                if key == "provenance":
                    result[key] = {
                        pkey: self._deep_copy_without_checksum(pvalue)
                        for pkey, pvalue in value.items()
                        if pkey != "checksum"
                    }
                else:
                    result[key] = self._deep_copy_without_checksum(value)
            return result
        if isinstance(obj, list):
            return [self._deep_copy_without_checksum(item) for item in obj]
        return obj

    def _to_deterministic_json_bytes(self, obj: Any) -> bytes:
        """Convert object to deterministic JSON bytes."""
        json_str = json.dumps(
            self._normalize_structure(obj),
            ensure_ascii=False,
            sort_keys=True,
            separators=(",", ":"),
            indent=None,
        )
        return json_str.encode("utf-8", errors="replace")

    def to_json_string(self, payload: Dict[str, Any]) -> str:
        """Convert payload to pretty-printed JSON string."""
        normalized = self._normalize_structure(payload)
        return json.dumps(
            normalized,
            ensure_ascii=False,
            sort_keys=True,
            indent=2,
        )

    def create_success_envelope(self, payload: Any) -> Dict[str, Any]:
        """Create success envelope around payload."""
        return {"ok": True, "data": payload}

    def create_error_envelope(
        self, error_code: str, error_message: str, details: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        """Create error envelope."""
        logger.debug("Creating error envelope", extra={"code": error_code})
        error_data = {
            "code": error_code,
            "message": error_message,
        }
        if details:
            error_data["details"] = details

        return {"ok": False, "error": error_data}
