"""Tests for canonical master index filenames."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from masterindex.constants import ROOT_CANONICAL_NAME
from masterindex.generation.naming import (
    artifact_reference,
    canonical_filename,
    is_canonical_name,
)

SEGMENT = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789_", min_size=1, max_size=12)
LOOSE_SEGMENT = st.one_of(
    st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789_-.", min_size=1, max_size=12),
    st.sampled_from(["llmreadme", "llmreadme-enhanced", "src", "."]),
)
SUFFIXED_TOKENS = {"src", "source", "test", "docs", "tools", "types", "llmreadme"}
ARTIFACT = st.sampled_from(["llmreadme.json", "llmreadme-enhanced.json"])


@pytest.mark.parametrize(
    "path",
    ["llmreadme.json", "llmreadme-enhanced.json", "./llmreadme.json", "/llmreadme.json"],
)
def test_root_artifact_gets_fixed_name(path):
    """Artifacts in the project root map to the root constant."""
    assert canonical_filename(path) == ROOT_CANONICAL_NAME


@pytest.mark.parametrize(
    "path, expected",
    [
        ("packages/api/llmreadme.json", "packages-api.json"),
        ("apps/web/src/components/llmreadme.json", "apps-web-src-components.json"),
        ("lib/llmreadme-enhanced.json", "lib.json"),
        ("./lib/core/llmreadme.json", "lib-core.json"),
        ("lib\\core\\llmreadme.json", "lib-core.json"),
        ("lib//core/llmreadme.json", "lib-core.json"),
    ],
)
def test_nested_paths_are_flattened(path, expected):
    assert canonical_filename(path) == expected


@pytest.mark.parametrize("name", ["src", "source", "test", "docs", "tools", "types"])
def test_conventional_names_get_root_suffix(name):
    """Conventional top-level names are suffixed so they stay distinguishable."""
    assert canonical_filename(f"{name}/llmreadme.json") == f"{name}-root.json"


def test_conventional_name_only_matches_whole_token():
    """A nested path ending in a conventional name is not suffixed."""
    assert canonical_filename("packages/src/llmreadme.json") == "packages-src.json"
    assert canonical_filename("tests/llmreadme.json") == "tests.json"


def test_both_variants_share_a_name():
    """Standard and enhanced artifacts of one directory collide by design."""
    assert canonical_filename("a/b/llmreadme.json") == canonical_filename(
        "a/b/llmreadme-enhanced.json"
    )


def test_canonical_names_are_recognized():
    assert is_canonical_name("project-root.json")
    assert is_canonical_name("a-b.json")
    assert not is_canonical_name("llmreadme.json")
    assert not is_canonical_name("a/b.json")
    assert not is_canonical_name("notes.txt")


def test_artifact_reference_pairs_source_and_name():
    reference = artifact_reference("source/llmreadme.json")
    assert reference.source_relative_path == "source/llmreadme.json"
    assert reference.canonical_name == "source-root.json"


@given(st.lists(LOOSE_SEGMENT, min_size=0, max_size=6), ARTIFACT)
@settings(max_examples=300)
def test_transform_is_idempotent(segments, filename):
    """Property: applying the transform to its own output changes nothing."""
    path = "/".join([*segments, filename])
    once = canonical_filename(path)
    assert canonical_filename(once) == once
    assert canonical_filename(path) == once
    assert is_canonical_name(once)


@given(st.lists(SEGMENT, min_size=1, max_size=6), ARTIFACT)
@settings(max_examples=200)
def test_hyphen_count_matches_depth(segments, filename):
    """Property: N directory segments flatten to a name with N-1 hyphens."""
    token = "-".join(segments)
    path = "/".join([*segments, filename])
    name = canonical_filename(path)

    if token in SUFFIXED_TOKENS:
        assert name == f"{token}-root.json"
    else:
        assert name == f"{token}.json"
        assert name.count("-") == len(segments) - 1


@pytest.mark.parametrize(
    "path, expected",
    [
        ("llmreadme/llmreadme.json", "llmreadme-root.json"),
        ("llmreadme-enhanced/llmreadme-enhanced.json", "llmreadme-enhanced-root.json"),
        ("a/llmreadme/llmreadme.json", "a-llmreadme.json"),
    ],
)
def test_directory_named_like_artifact_is_not_an_artifact_name(path, expected):
    """A directory called "llmreadme" must not flatten to "llmreadme.json"."""
    name = canonical_filename(path)

    assert name == expected
    assert is_canonical_name(name)
    assert canonical_filename(name) == name
