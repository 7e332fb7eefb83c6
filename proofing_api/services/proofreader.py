import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from proofing_api.config import Settings
from proofing_api.models import FindingsReport, RewriteItem, RewriteResult
from proofing_api.services.generation_client import WEB_SEARCH_TOOL, build_generation_client
from proofing_api.services.link_prober import probe_links
from proofing_api.services.reconciler import reconcile_link_findings
from proofing_api.services.response_normalizer import normalize_report
from proofing_api.services.rewrite_expander import expand_rewrites
from proofing_api.services.tool_session import run_tool_session

LOGGER = logging.getLogger(__name__)

SYSTEM_PROMPT = """あなたはWebメディアの編集者です。以下の原稿を校正・校閲してください。

以下の6つのカテゴリで分析し、必ずJSON形式のみで返してください。前後の説明は一切不要です。

返すJSONの構造（各カテゴリ共通の項目形式）:
{
  "factCheck": [{"context": "前後の文脈を含む部分", "original": "修正が必要な箇所", "corrections": ["修正案1", "修正案2"], "reason": "理由"}],
  "linkCheck": [...],
  "toneCheck": [...],
  "typoCheck": [...],
  "readabilityCheck": [...],
  "notationCheck": [...]
}

チェック項目:
1. factCheck: 固有名詞・サービス名の表記確認（必要に応じてWeb検索で正確性を確認）
2. linkCheck: URLの記載確認
3. toneCheck: 文体の統一（ですます調/である調の混在をチェック）
4. typoCheck: 誤字脱字・衍字
5. readabilityCheck: 語尾の重複、句読点、長文の分割提案
6. notationCheck: 表記ゆれ（漢字・ひらがな・カタカナ、全角・半角、数字表記の不統一）

修正がない項目は空配列[]で返してください。
originalには原稿中の該当箇所をそのまま抜き出してください。
contextには修正箇所の前後1-2文を含めて、どこの部分かわかるようにしてください。"""

def _generate(client, text: str, settings: Settings) -> str:
    if settings.tool_use_enabled:
        session = run_tool_session(
            client,
            SYSTEM_PROMPT,
            text,
            tools=[WEB_SEARCH_TOOL],
            max_iterations=settings.max_tool_iterations,
        )
    else:
        session = run_tool_session(client, SYSTEM_PROMPT, text, max_iterations=1)
    LOGGER.debug("Generation finished in state %s after %d turns", session.state.value, len(session.turns))
    return session.text

def _probe(text: str, settings: Settings):
    if not settings.link_probe_enabled:
        return []
    return probe_links(text, settings.link_probe_sample_cap, settings.link_probe_timeout)

def run_analysis(text: str, settings: Settings, client=None) -> FindingsReport:
    """Generate findings and probe links concurrently, then normalize and reconcile."""
    if client is None:
        client = build_generation_client(settings, "anthropic")

    with ThreadPoolExecutor(max_workers=2) as pool:
        generation = pool.submit(_generate, client, text, settings)
        probes = pool.submit(_probe, text, settings)
        probe_results = probes.result()
        raw_output = generation.result()

    report = normalize_report(raw_output)
    return reconcile_link_findings(report, probe_results)

def run_rewrite(items: List[RewriteItem], settings: Settings, client: Optional[object] = None) -> List[RewriteResult]:
    if client is None:
        client = build_generation_client(settings, settings.rewrite_provider)
    return expand_rewrites(items, client)
