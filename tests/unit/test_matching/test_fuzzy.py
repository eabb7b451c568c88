from kasa.matching.fuzzy import bigram_dice, fuzzy_keyword_match, token_set_ratio


def test_bigram_dice_identical() -> None:
    assert bigram_dice("carrefour", "carrefour") == 1.0


def test_bigram_dice_typo() -> None:
    # 8 shared bigrams out of 9 + 8.
    assert bigram_dice("carrefouur", "carrefour") == 16 / 17


def test_bigram_dice_single_character_has_no_bigrams() -> None:
    assert bigram_dice("a", "abc") == 0.0
    assert bigram_dice("", "") == 0.0


def test_token_set_ratio_uses_smaller_set() -> None:
    assert token_set_ratio("loyer mars", "vir sepa loyer mars") == 1.0
    assert token_set_ratio("loyer avril", "loyer mars") == 0.5


def test_token_set_ratio_ignores_single_character_tokens() -> None:
    assert token_set_ratio("a b c", "a b c") == 0.0


def test_fuzzy_keyword_match_accepts_typo() -> None:
    assert fuzzy_keyword_match("vir carrefour market 01 02", "carrefouur")


def test_fuzzy_keyword_match_rejects_unrelated() -> None:
    assert not fuzzy_keyword_match("vir carrefour market 01 02", "sncf")


def test_fuzzy_keyword_match_requires_every_keyword_token() -> None:
    assert fuzzy_keyword_match("carrefour market paris", "carrefour market")
    assert not fuzzy_keyword_match("carrefour city paris", "carrefour market")


def test_fuzzy_keyword_match_short_keyword_never_matches() -> None:
    assert not fuzzy_keyword_match("cb ab 12", "ab")
