#!/usr/bin/env python3
"""
Load raw metadata snapshots and patch logs in the sync layer's JSON format.

A snapshot document looks like::

    {
        "musics": [1, 2],
        "tags": [{"music_id": 1, "key": "title", "text": "..."}],
        "users": [{"id": 1, "name": "..."}],
        "settings": [["key", "value"]],
        "patches": [{"kind": "add", "tag": {...}}]
    }

``tags`` may be omitted or null in a patch-only update.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from loguru import logger

from playnext.core.metadata.patches import patch_from_dict
from playnext.core.models import Patch, RawMetadata, Tag, User


class SnapshotFormatError(ValueError):
    """Raised when a snapshot document does not have the expected shape."""


def parse_patches(items: Any) -> List[Patch]:
    """Parse a list of patch dictionaries, skipping unknown kinds."""
    patches: List[Patch] = []
    for item in items or []:
        if not isinstance(item, dict):
            logger.warning(f"⚠️  Skipping malformed patch entry: {item!r}")
            continue
        patch = patch_from_dict(item)
        if patch is not None:
            patches.append(patch)
    return patches


def parse_raw_metadata(data: Dict[str, Any]) -> RawMetadata:
    """
    Convert a decoded snapshot document into RawMetadata.

    Args:
        data: Decoded JSON object

    Returns:
        RawMetadata instance

    Raises:
        SnapshotFormatError: If the document is not an object or musics is not a list
    """
    if not isinstance(data, dict):
        raise SnapshotFormatError(
            f"Snapshot must be a JSON object, got {type(data).__name__}"
        )

    musics = data.get("musics") or []
    if not isinstance(musics, list):
        raise SnapshotFormatError("Snapshot field 'musics' must be a list")

    raw_tags = data.get("tags")
    tags = (
        [Tag.from_dict(t) for t in raw_tags if isinstance(t, dict)]
        if raw_tags is not None
        else None
    )

    users = [User.from_dict(u) for u in data.get("users") or [] if isinstance(u, dict)]
    settings = [
        (str(pair[0]), str(pair[1]))
        for pair in data.get("settings") or []
        if isinstance(pair, (list, tuple)) and len(pair) == 2
    ]

    return RawMetadata(
        musics=list(musics),
        tags=tags,
        users=users,
        settings=settings,
        patches=parse_patches(data.get("patches")),
    )


def _read_json(path: Union[str, Path]) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        logger.error(f"❌ Snapshot file not found: {path}")
        raise
    except json.JSONDecodeError as e:
        logger.error(f"❌ Invalid JSON in {path}: {e}")
        raise


def load_snapshot(path: Union[str, Path]) -> RawMetadata:
    """Load a snapshot document from a JSON file."""
    raw = parse_raw_metadata(_read_json(path))
    tag_count = len(raw.tags) if raw.tags is not None else 0
    logger.info(
        f"📂 Loaded snapshot {path}: {len(raw.musics)} tracks, {tag_count} tags, "
        f"{len(raw.patches)} patches"
    )
    return raw


def load_snapshot_with_patches(
    snapshot_path: Union[str, Path], patch_path: Union[str, Path]
) -> RawMetadata:
    """Load a snapshot and append the patches stored in a separate JSON list."""
    raw = load_snapshot(snapshot_path)
    items = _read_json(patch_path)
    if not isinstance(items, list):
        raise SnapshotFormatError("Patch file must contain a JSON list")

    raw.patches = raw.patches + parse_patches(items)
    logger.info(f"🩹 Loaded {len(items)} patches from {patch_path}")
    return raw
