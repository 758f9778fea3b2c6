"""Tests for the signature taxonomy and classification."""

import json

import pytest

from autentica.config import TAXONOMY_ENV, default_taxonomy_path
from autentica.signatures import (
    PRIORITY,
    VERDICTS,
    SignatureTaxonomy,
    classify,
    get_taxonomy,
    load_taxonomy,
)
from autentica.types import SignatureCategory


class TestTaxonomyLoading:
    def test_packaged_taxonomy_loads(self):
        taxonomy = load_taxonomy(default_taxonomy_path())
        assert taxonomy.loaded
        assert all(count > 0 for count in taxonomy.counts().values())

    def test_missing_file_is_empty(self, tmp_path):
        taxonomy = load_taxonomy(tmp_path / "absent.json")
        assert not taxonomy.loaded
        assert taxonomy.counts() == {c.value: 0 for c in PRIORITY}

    def test_malformed_file_is_empty(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[[[")
        assert not load_taxonomy(path).loaded

    def test_deeply_nested_file_is_empty(self, tmp_path):
        path = tmp_path / "nested.json"
        path.write_text("[" * 100000)
        taxonomy = load_taxonomy(path)
        assert not taxonomy.loaded
        assert taxonomy.counts() == {c.value: 0 for c in PRIORITY}

    def test_non_object_root_is_empty(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text(json.dumps(["photoshop"]))
        assert not load_taxonomy(path).loaded

    def test_invalid_pattern_dropped(self):
        taxonomy = SignatureTaxonomy.from_mapping({
            "edition-software": ["(unclosed", "gimp", 42, ""],
        })
        assert taxonomy.counts()["edition-software"] == 1
        assert taxonomy.matches(SignatureCategory.EDITING, "made in GIMP 2.10")

    def test_unknown_category_skipped(self):
        taxonomy = SignatureTaxonomy.from_mapping({
            "not-a-category": ["x"],
            "unknown": ["y"],
            "ai-watermark": "synthid",
        })
        assert taxonomy.loaded
        assert sum(taxonomy.counts().values()) == 0

    def test_patterns_immutable(self, small_taxonomy):
        with pytest.raises(TypeError):
            small_taxonomy.patterns[SignatureCategory.EDITING] = ()

    def test_env_override(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"edition-software": ["mytool"]}))
        monkeypatch.setenv(TAXONOMY_ENV, str(path))
        taxonomy = get_taxonomy()
        assert taxonomy.source == str(path)
        assert taxonomy.matches(SignatureCategory.EDITING, "mytool 1.0")

    def test_registry_loads_once(self, tmp_path):
        path = tmp_path / "t.json"
        path.write_text(json.dumps({"edition-software": ["gimp"]}))
        assert get_taxonomy(path) is get_taxonomy(path)


class TestClassify:
    def test_case_insensitive(self, small_taxonomy):
        assert classify("ADOBE PHOTOSHOP 2024", small_taxonomy) is SignatureCategory.EDITING

    def test_seal_beats_editing(self, small_taxonomy):
        blob = "adobe photoshop | truepic"
        assert classify(blob, small_taxonomy) is SignatureCategory.VERIFICATION_SEAL

    def test_camera_beats_editing(self, small_taxonomy):
        blob = "canon eos r5 | photoshop"
        assert classify(blob, small_taxonomy) is SignatureCategory.CAMERA

    def test_watermark_beats_everything_but_provenance(self, small_taxonomy):
        blob = "midjourney | synthid | truepic"
        assert classify(blob, small_taxonomy) is SignatureCategory.AI_WATERMARK
        assert classify(blob + " | c2pa", small_taxonomy) is SignatureCategory.PROVENANCE

    def test_extended_blob_only_for_wide_scope(self, small_taxonomy):
        assert classify("", small_taxonomy, "synthid") is SignatureCategory.AI_WATERMARK
        assert classify("", small_taxonomy, "photoshop") is SignatureCategory.UNKNOWN

    def test_empty_text_is_unknown(self, small_taxonomy):
        assert classify(None, small_taxonomy) is SignatureCategory.UNKNOWN

    def test_empty_taxonomy_is_unknown(self):
        assert classify("photoshop", SignatureTaxonomy.empty()) is SignatureCategory.UNKNOWN


class TestVerdicts:
    @pytest.mark.parametrize("category,score,reliable", [
        (SignatureCategory.PROVENANCE, 10.0, True),
        (SignatureCategory.AI_WATERMARK, 0.0, False),
        (SignatureCategory.VERIFICATION_SEAL, 10.0, True),
        (SignatureCategory.CAMERA, 8.0, True),
        (SignatureCategory.EDITING, 5.0, None),
        (SignatureCategory.AI_GENERATION, 0.0, False),
        (SignatureCategory.UNKNOWN, 5.0, None),
    ])
    def test_verdict_table(self, category, score, reliable):
        assert VERDICTS[category].score == score
        assert VERDICTS[category].reliable is reliable
