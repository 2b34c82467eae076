"""Catalog store -- validated read-modify-write of the project catalog document.

The catalog is a single JSON document holding either a bare list of project
records or an object wrapping them under a 'projects' key. Every mutation
re-reads the whole document, modifies it and writes it back, copying the
previous version to a timestamped backup first.

Only one writer is expected at a time. Mutations are serialized inside one
process, but two processes writing the same document can still lose updates.
"""

import glob
import json
import logging
import os
import shutil
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from .errors import CorruptData, DuplicateTitle, NotFound, StorageUnavailable, ValidationError

logger = logging.getLogger(__name__)

URL_SCHEMES = ('http', 'https')


def title_key(title: str) -> str:
    """Key used for duplicate detection and deletion: trimmed, case-folded."""
    return title.strip().casefold()


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def backup_path_candidate(base: str, seq: int) -> str:
    """'<base>' for the first backup in a millisecond, '<base>-<seq>' after that."""
    return base if seq == 0 else f'{base}-{seq}'


def backup_sort_key(name: str) -> Tuple[int, int]:
    """Order backups by their '<millis>[-<seq>]' suffix."""
    stamp, _, seq = name.rsplit('.', 1)[-1].partition('-')
    return (int(stamp) if stamp.isdigit() else 0, int(seq) if seq.isdigit() else 0)


def is_valid_url(value: str) -> bool:
    """Check that value parses as an absolute http(s) URL with a host."""
    if any(ch.isspace() for ch in value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme.lower() in URL_SCHEMES and bool(parsed.netloc)


def clean_tags(tags) -> List[str]:
    """Trim tags and drop blank or non-string entries. Duplicates are kept."""
    if not tags:
        return []
    return [tag.strip() for tag in tags if isinstance(tag, str) and tag.strip()]


def validate_candidate(candidate: Any) -> Dict[str, Any]:
    """Validate and normalize a submitted record.

    Returns a new dict with trimmed 'title' and 'file' and a cleaned 'tags'
    list. Raises ValidationError describing the first bad field.
    """
    if not isinstance(candidate, dict):
        raise ValidationError('Request body must be a JSON object')

    title = candidate.get('title')
    if not isinstance(title, str) or not title.strip():
        raise ValidationError('Project title is required and must be a non-empty string')

    file_url = candidate.get('file')
    if not isinstance(file_url, str) or not file_url.strip():
        raise ValidationError('File URL is required and must be a non-empty string')
    if not is_valid_url(file_url.strip()):
        raise ValidationError('File must be a valid URL')

    tags = candidate.get('tags')
    if tags is not None and not isinstance(tags, list):
        raise ValidationError('Tags must be an array of strings')

    return {
        'title': title.strip(),
        'file': file_url.strip(),
        'tags': clean_tags(tags),
    }


def normalize_catalog(data: Any) -> List[Dict[str, Any]]:
    """Turn either persisted shape into a list of records.

    Accepts a bare list or {'projects': [...]}. Records without a 'tags'
    list get an empty one. Raises CorruptData for anything else.
    """
    if isinstance(data, dict) and isinstance(data.get('projects'), list):
        items = data['projects']
    elif isinstance(data, list):
        items = data
    else:
        raise CorruptData('Expected an array of projects or an object with a "projects" array')

    projects = []
    for i, item in enumerate(items):
        if not isinstance(item, dict) or not isinstance(item.get('title'), str):
            raise CorruptData(f'Project at position {i} is not a well-formed record')
        tags = item.get('tags')
        if tags is None:
            tags = []
        elif not isinstance(tags, list):
            raise CorruptData(f'Project "{item["title"]}" has tags that are not an array')
        record = dict(item)
        record['tags'] = [tag for tag in tags if isinstance(tag, str)]
        projects.append(record)
    return projects


class CatalogStore:
    """Storage interface for the catalog: list_all, append, delete_by_title.

    Subclasses provide the raw document I/O (_read_document, _write_document
    and backup); this class owns validation, uniqueness and the
    read-modify-write cycle.
    """

    def __init__(self):
        self._lock = threading.Lock()

    # ─── Document I/O (backend specific) ───

    def _read_document(self) -> Optional[Any]:
        """Return the parsed document, or None if it does not exist."""
        raise NotImplementedError

    def _write_document(self, data: Any) -> None:
        raise NotImplementedError

    def backup(self) -> Optional[str]:
        """Copy the current document aside. Returns the backup name or None.

        Must never raise: a failed backup is logged and the write goes ahead.
        """
        raise NotImplementedError

    def describe(self) -> str:
        return self.__class__.__name__

    # ─── Catalog operations ───

    def _load(self) -> Tuple[List[Dict[str, Any]], bool]:
        data = self._read_document()
        if data is None:
            return [], False
        return normalize_catalog(data), isinstance(data, dict)

    def _save(self, projects: List[Dict[str, Any]], wrapped: bool) -> None:
        self.backup()
        self._write_document({'projects': projects} if wrapped else projects)
        logger.info("Wrote %d projects to %s", len(projects), self.describe())

    def list_all(self) -> List[Dict[str, Any]]:
        """Return every record in insertion order. A missing document is empty."""
        return self._load()[0]

    def append(self, candidate: Any) -> Dict[str, Any]:
        """Validate, check uniqueness, stamp createdAt and persist a new record."""
        record = validate_candidate(candidate)
        key = title_key(record['title'])

        with self._lock:
            projects, wrapped = self._load()
            if any(title_key(p['title']) == key for p in projects):
                raise DuplicateTitle('A project with this title already exists')

            record['createdAt'] = utc_timestamp()
            projects.append(record)
            self._save(projects, wrapped)

        logger.info('Added new project: "%s"', record['title'])
        return record

    def delete_by_title(self, title: str) -> Dict[str, Any]:
        """Remove the record whose case-folded title matches exactly."""
        if not isinstance(title, str) or not title.strip():
            raise NotFound('No project found with the specified title')
        key = title_key(title)

        with self._lock:
            projects, wrapped = self._load()
            for i, project in enumerate(projects):
                if title_key(project['title']) == key:
                    break
            else:
                raise NotFound('No project found with the specified title')

            removed = projects.pop(i)
            self._save(projects, wrapped)

        logger.info('Deleted project: "%s"', removed['title'])
        return removed

    def replace_all(self, data: Any) -> List[Dict[str, Any]]:
        """Overwrite the catalog with an imported document (either shape).

        Every record is validated like a new submission, keeping its
        createdAt when present. Titles must be unique; the previous document
        is backed up first.
        """
        projects = []
        seen = set()
        for i, item in enumerate(normalize_catalog(data)):
            try:
                record = validate_candidate(item)
            except ValidationError as e:
                raise ValidationError(f'Project at position {i}: {e.message}') from e
            key = title_key(record['title'])
            if key in seen:
                raise DuplicateTitle(f'Duplicate project title in import: "{record["title"]}"')
            seen.add(key)
            created = item.get('createdAt')
            record['createdAt'] = created if isinstance(created, str) and created else utc_timestamp()
            projects.append(record)

        with self._lock:
            self._save(projects, isinstance(data, dict))
        return projects

    def count(self) -> int:
        return len(self.list_all())


class JsonFileCatalogStore(CatalogStore):
    """Catalog kept in a JSON file on local disk.

    Backups are written beside the file as '<file>.backup.<epoch millis>'.
    With backup_retention > 0 only that many of the newest backups are kept.
    """

    def __init__(self, path: str, backup_retention: int = 0):
        super().__init__()
        self.path = path
        self.backup_retention = backup_retention

    def describe(self) -> str:
        return self.path

    def _read_document(self):
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            logger.info("Projects file %s does not exist, starting with empty catalog", self.path)
            return None
        except json.JSONDecodeError as e:
            raise CorruptData(f'Projects file is not valid JSON: {e}') from e
        except (OSError, UnicodeDecodeError) as e:
            raise StorageUnavailable(f'Failed to read projects file: {e}') from e

    def _write_document(self, data):
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = f'{self.path}.tmp'
        try:
            os.makedirs(directory, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write('\n')
            os.replace(tmp_path, self.path)
        except OSError as e:
            try:
                os.remove(tmp_path)
            except FileNotFoundError:
                pass
            raise StorageUnavailable(f'Failed to write projects file: {e}') from e

    def backup(self):
        base = f'{self.path}.backup.{int(time.time() * 1000)}'
        seq = 0
        while os.path.exists(backup_path_candidate(base, seq)):
            seq += 1
        backup_path = backup_path_candidate(base, seq)
        try:
            shutil.copyfile(self.path, backup_path)
        except FileNotFoundError:
            logger.debug("No projects file at %s yet, skipping backup", self.path)
            return None
        except OSError as e:
            logger.warning("Failed to create backup of %s: %s", self.path, e)
            return None

        logger.info("Created backup: %s", backup_path)
        if self.backup_retention > 0:
            self.prune_backups()
        return backup_path

    def list_backups(self) -> List[str]:
        """Backup files for this catalog, oldest first."""
        backups = glob.glob(glob.escape(self.path) + '.backup.*')

        return sorted(backups, key=backup_sort_key)

    def prune_backups(self) -> int:
        """Delete the oldest backups beyond backup_retention. Returns count removed."""
        backups = self.list_backups()
        excess = backups[:-self.backup_retention] if self.backup_retention > 0 else []
        removed = 0
        for old in excess:
            try:
                os.remove(old)
                removed += 1
            except OSError as e:
                logger.warning("Failed to remove old backup %s: %s", old, e)
        return removed
