from __future__ import annotations

import logging
import os
import tempfile
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
from uuid import UUID

import yaml

from domain.errors import StorageError
from domain.models import AccountRecord

logger = logging.getLogger("xpledger.storage.yaml")

FILE_FORMAT_VERSION = 1


class YamlAccountStore:
    """
    File-backed implementation of `AccountStore`.

    The file looks like::

        version: 1
        accounts:
          - uuid: 6f1c...
            name: Steve
            balance: 1395

    Saves merge the snapshot over whatever the file already holds and
    replace the file atomically (write to a temp file in the same
    directory, fsync, rename). Entries that cannot be parsed are skipped
    on load but written back untouched, so a hand edit gone wrong can
    still be repaired.
    """

    def __init__(self, path: str) -> None:
        self._path = Path(path)
        self._version_warned = False

    @property
    def path(self) -> Path:
        return self._path

    @staticmethod
    def _to_record(entry: Any) -> AccountRecord:
        if not isinstance(entry, dict):
            raise ValueError(f"expected a mapping, got {type(entry).__name__}")
        balance = Decimal(str(entry["balance"])).to_integral_value(rounding=ROUND_HALF_UP)
        name = entry.get("name")
        return AccountRecord(
            id=UUID(str(entry["uuid"])),
            balance_raw=max(0, int(balance)),
            name=str(name) if name else None,
        )

    @staticmethod
    def _to_entry(record: AccountRecord) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"uuid": str(record.id)}
        if record.name:
            entry["name"] = record.name
        entry["balance"] = record.balance_raw
        return entry

    def _read_document(self) -> Optional[Dict[str, Any]]:
        if not self._path.exists():
            return None
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise StorageError(f"Could not read {self._path}: {exc}") from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StorageError(f"{self._path} does not contain an account document.")
        return data

    def _check_version(self, data: Dict[str, Any]) -> None:
        version = data.get("version")
        if version == FILE_FORMAT_VERSION or self._version_warned:
            return
        self._version_warned = True
        logger.warning(
            "Account file %s is version %s (expected %s); loading anyway, data may be lost.",
            self._path,
            "unknown" if version is None else version,
            FILE_FORMAT_VERSION,
        )

    def _parse_entries(self, data: Dict[str, Any]) -> Iterator[Tuple[Optional[AccountRecord], Any]]:
        """Yield `(record, entry)` pairs; `record` is None for an unparseable entry."""

        self._check_version(data)
        for entry in data.get("accounts") or []:
            try:
                yield self._to_record(entry), entry
            except (KeyError, ValueError, TypeError, InvalidOperation) as exc:
                logger.debug("Unparseable account entry in %s (%s): %r", self._path, exc, entry)
                yield None, entry

    def load(self) -> List[AccountRecord]:
        data = self._read_document()
        if data is None:
            return []
        records = []
        for record, entry in self._parse_entries(data):
            if record is None:
                logger.warning("Skipping malformed account entry in %s: %r", self._path, entry)
            else:
                records.append(record)
        return records

    def _existing_for_merge(self) -> Tuple[Dict[UUID, AccountRecord], List[Any]]:
        try:
            data = self._read_document()
        except StorageError:
            corrupt = self._path.with_name(self._path.name + ".corrupt")
            logger.warning("Existing %s is unreadable; moving it to %s before saving.", self._path, corrupt)
            os.replace(self._path, corrupt)
            return {}, []
        if not data:
            return {}, []

        records: Dict[UUID, AccountRecord] = {}
        unparsed: List[Any] = []
        for record, entry in self._parse_entries(data):
            if record is None:
                unparsed.append(entry)
            else:
                records[record.id] = record
        return records, unparsed

    def save(self, records: Sequence[AccountRecord]) -> bool:
        temp_path = None
        try:
            merged, unparsed = self._existing_for_merge()
            for record in records:
                merged[record.id] = record
            # A valid record supersedes a broken entry for the same player.
            known = {str(player_id) for player_id in merged}
            unparsed = [
                entry for entry in unparsed
                if not (isinstance(entry, dict) and str(entry.get("uuid")) in known)
            ]

            document = {
                "version": FILE_FORMAT_VERSION,
                "accounts": [self._to_entry(record) for record in merged.values()] + unparsed,
            }

            directory = self._path.parent
            directory.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=str(directory), suffix=".yml.tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(document, f, sort_keys=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self._path)
            temp_path = None
        except (OSError, yaml.YAMLError):
            logger.exception("Failed to save accounts to %s.", self._path)
            return False
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)
        return True
