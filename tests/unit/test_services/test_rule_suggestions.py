from kasa.services.rule_suggestions import (
    build_frequency_map,
    extract_keywords,
    rank_suggestions,
)


def test_extract_keywords_filters_short_numeric_and_stop_words() -> None:
    assert extract_keywords("CB BOULANGERIE PAUL 12345 pour avec 01/02") == ["boulangerie", "paul"]


def test_build_frequency_map_counts_across_labels() -> None:
    freq = build_frequency_map(["CB PAUL", "CB PAUL GARE", "PAUL"])
    assert freq["paul"] == 3
    assert freq["gare"] == 1


def test_keyword_seen_twice_is_not_suggested() -> None:
    labels = ["CB DECATHLON", "CB DECATHLON", "CB FNAC", "CB FNAC", "CB FNAC"]
    suggestions = rank_suggestions(labels, existing_keywords=[])
    assert [s.keyword for s in suggestions] == ["fnac"]
    assert suggestions[0].match_count == 3


def test_existing_keyword_is_not_suggested() -> None:
    labels = ["CB FNAC"] * 3 + ["CB PICARD"] * 4
    suggestions = rank_suggestions(labels, existing_keywords=["Picard"])
    assert [s.keyword for s in suggestions] == ["fnac"]


def test_sorted_by_frequency_and_capped_at_ten() -> None:
    labels = []
    for i in range(15):
        labels.extend([f"CB SHOP{chr(ord('a') + i)}"] * (3 + i))
    suggestions = rank_suggestions(labels, existing_keywords=[])
    assert len(suggestions) == 10
    counts = [s.match_count for s in suggestions]
    assert counts == sorted(counts, reverse=True)
    assert suggestions[0].keyword == "shopo"
