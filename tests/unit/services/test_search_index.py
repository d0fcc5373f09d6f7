"""Unit tests for the inverted search index."""

from publication_scout.models.model_publication import Publication
from publication_scout.services.search_index import build_index, publication_tokens, tokenize


def test_tokenize_lowercases_and_drops_short_tokens():
    assert tokenize("Bone-loss in the ISS, 2x!") == ["bone", "loss", "the", "iss"]


def test_tokenize_empty():
    assert tokenize("") == []
    assert tokenize("a b c") == []


def test_publication_tokens_cover_every_indexed_field():
    pub = Publication(
        id="x",
        title="Bone density",
        abstract="Mice were flown",
        keywords=["gravitropism"],
        authors=["Smith John"],
        topics=["radiation"],
        journal="Unindexed Journal",
    )
    tokens = publication_tokens(pub)

    assert tokens == [
        "bone",
        "density",
        "mice",
        "were",
        "flown",
        "gravitropism",
        "smith",
        "john",
        "radiation",
    ]
    assert "unindexed" not in tokens


def test_publication_tokens_are_distinct():
    pub = Publication(id="x", title="bone bone", abstract="Bone")
    assert publication_tokens(pub) == ["bone"]


def test_index_positions_ascending_and_unique(three_publications):
    index = build_index(three_publications)

    assert index["bone"] == [0, 1]
    assert index["radiation"] == [1, 2]
    assert index["density"] == [0, 1]
    for positions in index.values():
        assert positions == sorted(set(positions))


def test_index_consistent_with_tokenizer(three_publications):
    """A token maps to a position iff that publication's fields yield the token."""
    index = build_index(three_publications)

    for position, pub in enumerate(three_publications):
        tokens = set(publication_tokens(pub))
        for token, positions in index.items():
            assert (position in positions) == (token in tokens)


def test_empty_corpus():
    assert build_index([]) == {}
