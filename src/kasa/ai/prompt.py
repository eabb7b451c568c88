"""Prompt construction for batch categorization."""

from typing import Protocol, Sequence


class CategoryLike(Protocol):
    id: object
    name: str


class TransactionLike(Protocol):
    label: str
    detail: str | None


PROMPT_TEMPLATE = """Tu es un assistant de catégorisation de transactions bancaires françaises.
Catégories disponibles (id → nom) :
{categories}

Pour chaque transaction, retourne UNIQUEMENT un JSON valide :
{{ "results": [{{ "index": 0, "categoryId": "id_categorie", "confidence": 0.95, "keyword": "motcle" }}] }}

Règles :
- confidence entre 0.0 et 1.0
- keyword : le mot-clé principal qui justifie la catégorisation (minuscule, sans accents)
- Si incertain (confidence < 0.5), utilise categoryId: null

Transactions :
{transactions}"""


def format_transaction(index: int, tx: TransactionLike) -> str:
    line = f'{index}: "{tx.label}"'
    if tx.detail:
        line += f' | détail: "{tx.detail}"'
    return line


def build_prompt(
    categories: Sequence[CategoryLike], transactions: Sequence[TransactionLike]
) -> str:
    """Build a single prompt for one batch.

    Transaction indexes are positions within the batch; the model refers back
    to them in its ``index`` field.
    """
    category_lines = "\n".join(f'- "{c.id}" → {c.name}' for c in categories)
    transaction_lines = "\n".join(
        format_transaction(i, tx) for i, tx in enumerate(transactions)
    )
    return PROMPT_TEMPLATE.format(categories=category_lines, transactions=transaction_lines)
