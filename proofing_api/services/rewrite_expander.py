import logging
from typing import List

from proofing_api.models import RewriteItem, RewriteResult
from proofing_api.services.response_normalizer import normalize_rewrite

LOGGER = logging.getLogger(__name__)

REWRITE_PROMPT = """あなたはプロの日本語校正者です。以下の各項目について、原文を修正してください。

ルール:
- 各項目について、修正案を2〜3個生成してください
- 修正案は自然な日本語で、原文の意味を保ったまま修正してください
- 指示に従って修正してください
- 余計な説明は不要です

必ず以下のJSON形式のみで返答してください（他のテキストは含めないでください）。
index には各項目の【項目N】の番号 N をそのまま入れてください:
{
  "results": [
    {"index": 0, "corrections": ["修正案1", "修正案2", "修正案3"]},
    {"index": 1, "corrections": ["修正案1", "修正案2"]}
  ]
}
"""

def build_items_text(items: List[RewriteItem]) -> str:
    return "\n\n".join(
        f"【項目{item.index}】\n原文: {item.original}\n指示: {item.hint}\n理由: {item.reason}"
        for item in items
    )

def expand_rewrites(items: List[RewriteItem], client) -> List[RewriteResult]:
    """Ask for alternative phrasings of every item in one call and match them back by index."""
    if not items:
        raise ValueError("修正項目が必要です")

    items = [
        item if item.index is not None else item.model_copy(update={"index": position})
        for position, item in enumerate(items)
    ]

    response = client.create(
        system=REWRITE_PROMPT,
        messages=[{"role": "user", "content": build_items_text(items)}],
    )
    text = "".join(b.get("text", "") for b in response.get("content", []) if b.get("type") == "text")

    by_index = {}
    for result in normalize_rewrite(text):
        # first answer per index wins
        by_index.setdefault(result.index, result)

    expected = [item.index for item in items]
    unknown = set(by_index) - set(expected)
    if unknown:
        LOGGER.warning("Ignoring rewrite results for unknown indices: %s", sorted(unknown))

    return [by_index[i] for i in expected if i in by_index]
