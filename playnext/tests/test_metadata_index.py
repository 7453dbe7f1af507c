#!/usr/bin/env python3
"""
Tests for playnext.core.metadata
"""

import math
import unittest

from playnext.core.metadata import (
    MetadataIndex,
    apply_patches,
    build_index,
    empty_metadata,
    patch_from_dict,
    patch_to_dict,
)
from playnext.core.models import (
    AddPatch,
    RawMetadata,
    RemovePatch,
    SearchEntry,
    Tag,
    UpdatePatch,
    User,
    Vector,
)


class TestVector(unittest.TestCase):
    """Test Vector magnitude"""

    def test_magnitude_is_euclidean_norm(self) -> None:
        """Test that the magnitude matches sqrt(sum(c^2))"""
        vector = Vector.from_components([3.0, 4.0])
        self.assertAlmostEqual(vector.magnitude, 5.0)

    def test_magnitude_of_arbitrary_vector(self) -> None:
        """Test magnitude on a longer vector"""
        components = [0.1, -0.7, 2.5, 1.0]
        vector = Vector.from_components(components)
        expected = math.sqrt(sum(c * c for c in components))
        self.assertAlmostEqual(vector.magnitude, expected)
        self.assertEqual(len(vector), 4)


class TestApplyPatches(unittest.TestCase):
    """Test patch application"""

    def setUp(self) -> None:
        """Set up test fixtures"""
        self.tags = [
            Tag(music_id=1, key="title", text="One"),
            Tag(music_id=1, key="artist", text="Band"),
            Tag(music_id=2, key="title", text="Two"),
        ]

    def test_add_appends(self) -> None:
        """Test that add appends to the end"""
        new_tag = Tag(music_id=2, key="artist", text="Other")
        result = apply_patches(self.tags, [AddPatch(tag=new_tag)])
        self.assertEqual(len(result), 4)
        self.assertEqual(result[-1], new_tag)

    def test_remove_requires_both_id_and_key(self) -> None:
        """Test that remove only drops tags matching music id AND key"""
        result = apply_patches(self.tags, [RemovePatch(music_id=1, key="title")])
        self.assertEqual(
            result,
            [
                Tag(music_id=1, key="artist", text="Band"),
                Tag(music_id=2, key="title", text="Two"),
            ],
        )

    def test_remove_is_idempotent(self) -> None:
        """Test that removing twice equals removing once"""
        once = apply_patches(self.tags, [RemovePatch(music_id=2, key="title")])
        twice = apply_patches(
            self.tags,
            [RemovePatch(music_id=2, key="title"), RemovePatch(music_id=2, key="title")],
        )
        self.assertEqual(once, twice)

    def test_remove_missing_is_noop(self) -> None:
        """Test removing a tag that does not exist"""
        result = apply_patches(self.tags, [RemovePatch(music_id=9, key="title")])
        self.assertEqual(result, self.tags)

    def test_update_replaces_first_match_in_place(self) -> None:
        """Test that update keeps the position of the replaced tag"""
        tags = self.tags + [Tag(music_id=1, key="title", text="Duplicate")]
        updated = Tag(music_id=1, key="title", text="Uno")
        result = apply_patches(tags, [UpdatePatch(tag=updated)])

        self.assertEqual(result[0], updated)
        self.assertEqual(result[3].text, "Duplicate")
        self.assertEqual(len(result), 4)

    def test_update_missing_is_noop(self) -> None:
        """Test updating a tag that does not exist"""
        result = apply_patches(
            self.tags, [UpdatePatch(tag=Tag(music_id=3, key="title", text="X"))]
        )
        self.assertEqual(result, self.tags)

    def test_patches_apply_in_order(self) -> None:
        """Test that a remove after an add deletes the added tag"""
        new_tag = Tag(music_id=3, key="title", text="Three")
        result = apply_patches(
            self.tags, [AddPatch(tag=new_tag), RemovePatch(music_id=3, key="title")]
        )
        self.assertEqual(result, self.tags)

    def test_input_is_not_mutated(self) -> None:
        """Test that the base tag list is left untouched"""
        original = list(self.tags)
        apply_patches(self.tags, [RemovePatch(music_id=1, key="title")])
        self.assertEqual(self.tags, original)


class TestPatchWireFormat(unittest.TestCase):
    """Test patch dictionaries"""

    def test_parse_each_kind(self) -> None:
        """Test parsing add, remove and update patches"""
        add = patch_from_dict(
            {"kind": "add", "tag": {"music_id": 1, "key": "title", "text": "A"}}
        )
        remove = patch_from_dict({"kind": "remove", "id": 1, "key": "title"})
        update = patch_from_dict(
            {"kind": "update", "tag": {"music_id": 1, "key": "title", "text": "B"}}
        )

        self.assertEqual(add, AddPatch(tag=Tag(music_id=1, key="title", text="A")))
        self.assertEqual(remove, RemovePatch(music_id=1, key="title"))
        self.assertEqual(update, UpdatePatch(tag=Tag(music_id=1, key="title", text="B")))

    def test_unknown_kind_is_skipped(self) -> None:
        """Test that unknown kinds parse to None"""
        self.assertIsNone(patch_from_dict({"kind": "rename"}))

    def test_to_dict_matches_wire_names(self) -> None:
        """Test serializing patches back to the wire format"""
        self.assertEqual(
            patch_to_dict(RemovePatch(music_id=4, key="artist")),
            {"kind": "remove", "id": 4, "key": "artist"},
        )
        self.assertEqual(
            patch_to_dict(AddPatch(tag=Tag(music_id=4, key="embedding", vector=(1.0, 2.0)))),
            {"kind": "add", "tag": {"music_id": 4, "key": "embedding", "vector": [1.0, 2.0]}},
        )


class TestMetadataIndex(unittest.TestCase):
    """Test MetadataIndex building"""

    def setUp(self) -> None:
        """Set up test fixtures"""
        self.raw = RawMetadata(
            musics=[1, 2, 3],
            tags=[
                Tag(music_id=1, key="title", text="Around the World"),
                Tag(music_id=1, key="artist", text="Daft Punk"),
                Tag(music_id=1, key="embedding", vector=(3.0, 4.0)),
                Tag(music_id=2, key="title", text="Windowlicker"),
                Tag(music_id=2, key="local_mp3", text="2.mp3"),
            ],
            users=[User(id=7, name="alice"), User(id=8, name="bob")],
            settings=[("volume", "0.5")],
        )

    def test_every_track_has_a_tag_mapping(self) -> None:
        """Test that tracks without tags get an empty mapping"""
        index = build_index(self.raw)
        self.assertEqual(index.get_tags(3), {})
        self.assertIn(3, index)

    def test_unknown_track_is_absent(self) -> None:
        """Test lookups for untracked ids"""
        index = build_index(self.raw)
        self.assertIsNone(index.get_tags(99))
        self.assertIsNone(index.get_tags(None))
        self.assertEqual(index.tag_text(99, "title"), "")
        self.assertIsNone(index.embedding(99))

    def test_tags_are_indexed_by_key(self) -> None:
        """Test tag lookup by track and key"""
        index = build_index(self.raw)
        self.assertEqual(index.tag_text(1, "artist"), "Daft Punk")
        self.assertEqual(set(index.get_tags(2) or {}), {"title", "local_mp3"})

    def test_embeddings_only_for_vector_tags(self) -> None:
        """Test that only embedding tags with vectors produce embeddings"""
        index = build_index(self.raw)
        self.assertEqual(set(index.embeddings), {1})
        self.assertAlmostEqual(index.embeddings[1].magnitude, 5.0)

    def test_search_document(self) -> None:
        """Test one search entry per track with empty defaults"""
        index = build_index(self.raw)
        self.assertEqual(
            index.search_document,
            [
                SearchEntry(id=1, title="Around the World", artist="Daft Punk"),
                SearchEntry(id=2, title="Windowlicker", artist=""),
                SearchEntry(id=3, title="", artist=""),
            ],
        )

    def test_settings_and_first_user(self) -> None:
        """Test snapshot settings and the first user"""
        index = build_index(self.raw)
        self.assertEqual(index.setting("volume"), "0.5")
        self.assertIsNone(index.setting("page"))
        self.assertEqual(index.first_user(), 7)
        self.assertIsNone(empty_metadata().first_user())

    def test_versions_increase(self) -> None:
        """Test that every build gets a new version"""
        first = build_index(self.raw)
        second = build_index(self.raw)
        self.assertGreater(second.version, first.version)

    def test_patch_only_update_uses_previous_tags(self) -> None:
        """Test that a snapshot without tags patches the previous tag list"""
        previous = build_index(self.raw)
        update = RawMetadata(
            musics=[1, 2, 3],
            tags=None,
            users=self.raw.users,
            patches=[
                UpdatePatch(tag=Tag(music_id=1, key="embedding", vector=(1.0, 0.0))),
                AddPatch(tag=Tag(music_id=3, key="title", text="Flim")),
            ],
        )

        index = MetadataIndex.build(update, previous=previous)

        self.assertAlmostEqual(index.embeddings[1].magnitude, 1.0)
        self.assertEqual(index.tag_text(3, "title"), "Flim")
        # The previous snapshot is left untouched
        self.assertAlmostEqual(previous.embeddings[1].magnitude, 5.0)
        self.assertEqual(previous.tag_text(3, "title"), "")

    def test_explicit_empty_tags_replace_previous(self) -> None:
        """Test that an empty tag list is not treated as missing"""
        index = build_index(
            RawMetadata(musics=[1], tags=[]),
            previous_tags=self.raw.tags,
        )
        self.assertEqual(index.tags, [])

    def test_no_base_tags(self) -> None:
        """Test building with neither raw nor previous tags"""
        index = build_index(
            RawMetadata(musics=[1], tags=None),
            patches=[AddPatch(tag=Tag(music_id=1, key="title", text="Solo"))],
        )
        self.assertEqual(index.tag_text(1, "title"), "Solo")

    def test_removed_embedding_disappears(self) -> None:
        """Test that removing the embedding tag drops the vector"""
        index = build_index(self.raw, patches=[RemovePatch(music_id=1, key="embedding")])
        self.assertIsNone(index.embedding(1))

    def test_malformed_embeddings_are_ignored(self) -> None:
        """Test that non-numeric or nested vectors do not break the build"""
        index = build_index(
            RawMetadata(
                musics=[1, 2, 3],
                tags=[
                    Tag(music_id=1, key="embedding", vector=("a", "b")),
                    Tag(music_id=2, key="embedding", vector=((1.0, 0.0), (0.0, 1.0))),
                    Tag(music_id=3, key="embedding", vector=(0.0, 2.0)),
                ],
            )
        )

        self.assertEqual(set(index.embeddings), {3})
        self.assertIsNone(index.embedding(1))
        self.assertIsNone(index.embedding(2))
        self.assertIn("embedding", index.get_tags(1))

    def test_malformed_embedding_from_wire(self) -> None:
        """Test decoded snapshot tags with unusable vectors"""
        tag = Tag.from_dict({"music_id": 1, "key": "embedding", "vector": ["a", "b"]})
        scalar = Tag.from_dict({"music_id": 2, "key": "embedding", "vector": 5})

        index = build_index(RawMetadata(musics=[1, 2], tags=[tag, scalar]))

        self.assertIsNone(scalar.vector)
        self.assertEqual(index.embeddings, {})

    def test_vector_rejects_nested_components(self) -> None:
        """Test that Vector only accepts flat sequences"""
        with self.assertRaises(ValueError):
            Vector.from_components([[1.0, 2.0], [3.0, 4.0]])

    def test_last_tag_per_key_wins(self) -> None:
        """Test duplicate keys during patching keep the later tag"""
        index = build_index(
            self.raw,
            patches=[AddPatch(tag=Tag(music_id=2, key="title", text="Xtal"))],
        )
        self.assertEqual(index.tag_text(2, "title"), "Xtal")


if __name__ == "__main__":
    unittest.main()
