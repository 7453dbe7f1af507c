"""
Patch parsing and application for incremental metadata updates.

Patches are applied in order to a copy of the previous tag list before the
index is rebuilt.
"""

from typing import Any, Dict, Iterable, List, Optional, assert_never

from loguru import logger

from playnext.core.models import AddPatch, Patch, RemovePatch, Tag, UpdatePatch


def patch_from_dict(data: Dict[str, Any]) -> Optional[Patch]:
    """
    Parse a patch from its wire dictionary.

    Args:
        data: Dictionary with a ``kind`` of ``add``, ``remove`` or ``update``

    Returns:
        The parsed patch, or None for an unknown kind
    """
    kind = data.get("kind")
    if kind == "add":
        return AddPatch(tag=Tag.from_dict(data.get("tag") or {}))
    if kind == "remove":
        return RemovePatch(music_id=data.get("id", 0), key=data.get("key", ""))
    if kind == "update":
        return UpdatePatch(tag=Tag.from_dict(data.get("tag") or {}))

    logger.warning(f"⚠️  Skipping patch with unknown kind: {kind!r}")
    return None


def patch_to_dict(patch: Patch) -> Dict[str, Any]:
    """Convert a patch back to its wire dictionary."""
    if isinstance(patch, AddPatch):
        return {"kind": "add", "tag": patch.tag.to_dict()}
    if isinstance(patch, RemovePatch):
        return {"kind": "remove", "id": patch.music_id, "key": patch.key}
    if isinstance(patch, UpdatePatch):
        return {"kind": "update", "tag": patch.tag.to_dict()}
    assert_never(patch)


def apply_patches(tags: Iterable[Tag], patches: Iterable[Patch]) -> List[Tag]:
    """
    Apply patches in order and return a new tag list.

    ``remove`` drops every tag matching both music id and key. ``update``
    overwrites the first matching tag in place; missing targets are no-ops.
    """
    result = list(tags)

    for patch in patches:
        if isinstance(patch, AddPatch):
            result.append(patch.tag)
        elif isinstance(patch, RemovePatch):
            result = [
                t
                for t in result
                if not (t.music_id == patch.music_id and t.key == patch.key)
            ]
        elif isinstance(patch, UpdatePatch):
            for i, t in enumerate(result):
                if t.music_id == patch.tag.music_id and t.key == patch.tag.key:
                    result[i] = patch.tag
                    break
        else:
            assert_never(patch)

    return result
