from types import SimpleNamespace

from kasa.ai.prompt import build_prompt


def test_prompt_lists_categories_and_indexed_transactions() -> None:
    categories = [
        SimpleNamespace(id="cat-food", name="Alimentation"),
        SimpleNamespace(id="cat-transport", name="Transport"),
    ]
    transactions = [
        SimpleNamespace(label="CB CARREFOUR", detail=None),
        SimpleNamespace(label="PRLV SNCF", detail="Abonnement TGV Max"),
    ]

    prompt = build_prompt(categories, transactions)

    assert '- "cat-food" → Alimentation' in prompt
    assert '- "cat-transport" → Transport' in prompt
    assert '0: "CB CARREFOUR"\n' in prompt
    assert '1: "PRLV SNCF" | détail: "Abonnement TGV Max"' in prompt
    assert '{ "results": [{ "index": 0' in prompt


def test_prompt_ends_with_transactions() -> None:
    prompt = build_prompt(
        [SimpleNamespace(id="c", name="Autre")],
        [SimpleNamespace(label="X", detail="")],
    )
    assert prompt.endswith('0: "X"')
