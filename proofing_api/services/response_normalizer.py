"""
Best-effort extraction of a JSON document from free-form model output.

Models wrap their answer in prose or code fences often enough that a plain
``json.loads`` is not an option. Extraction either returns a dict containing
the anchor key or raises ``MalformedResponseError``; there is no silent
fallback to an empty result.
"""
import json
import logging
import re
from typing import Any, List

from proofing_api.errors import MalformedResponseError
from proofing_api.models import CATEGORIES, Finding, FindingsReport, RewriteResult

LOGGER = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r"```(?:json)?")

def _strip_fences(text: str) -> str:
    return FENCE_PATTERN.sub("", text).strip()

def _scan_balanced_objects(text: str, anchor_key: str):
    decoder = json.JSONDecoder()
    for match in re.finditer(r"\{", text):
        try:
            obj, _ = decoder.raw_decode(text, match.start())
        except ValueError:
            continue
        if isinstance(obj, dict) and anchor_key in obj:
            return obj
    return None

def extract_json_object(raw_text: str, anchor_key: str) -> dict:
    text = _strip_fences(raw_text or "")
    anchor = re.escape(json.dumps(anchor_key))

    # Widest span first: from the first brace before the anchor to the last brace in the text.
    json_match = re.search(r"\{.*" + anchor + r".*\}", text, re.DOTALL)
    if not json_match:
        LOGGER.error("No JSON found in result: %s", (raw_text or "")[:500])
        raise MalformedResponseError("JSON形式の結果が見つかりませんでした", raw_text)

    try:
        data = json.loads(json_match.group(0))
        if isinstance(data, dict) and anchor_key in data:
            return data
    except ValueError:
        pass

    # Prose containing stray braces defeats the wide span; fall back to the first balanced object.
    data = _scan_balanced_objects(text, anchor_key)
    if data is None:
        LOGGER.error("Unparseable JSON in result: %s", (raw_text or "")[:500])
        raise MalformedResponseError("JSON形式の結果を解析できませんでした", raw_text)
    return data

def normalize_corrections(item: dict) -> List[str]:
    """Merge the legacy singular ``correction`` and the ``corrections`` list into one list."""
    corrections = item.get("corrections")
    if isinstance(corrections, str):
        corrections = [corrections]
    elif not isinstance(corrections, list):
        corrections = []
    corrections = [str(c).strip() for c in corrections if c is not None and str(c).strip()]

    single = item.get("correction")
    if isinstance(single, str) and single.strip():
        single = single.strip()
        if single in corrections:
            corrections.remove(single)
        corrections.insert(0, single)
    return corrections

def _normalize_finding(category: str, item: Any):
    if not isinstance(item, dict):
        LOGGER.warning("Dropping non-object entry in %s: %r", category, item)
        return None

    original = str(item.get("original") or "").strip()
    corrections = normalize_corrections(item)
    if not original or not corrections:
        LOGGER.warning("Dropping incomplete finding in %s: %r", category, item)
        return None

    return Finding(
        context=str(item.get("context") or ""),
        original=original,
        corrections=corrections,
        reason=str(item.get("reason") or ""),
    )

def normalize_report(raw_text: str) -> FindingsReport:
    data = extract_json_object(raw_text, "factCheck")

    categories = {}
    for category in CATEGORIES:
        entries = data.get(category)
        if not isinstance(entries, list):
            entries = []
        findings = [_normalize_finding(category, e) for e in entries]
        categories[category] = [f for f in findings if f is not None]

    return FindingsReport(**categories)

def normalize_rewrite(raw_text: str) -> List[RewriteResult]:
    data = extract_json_object(raw_text, "results")

    entries = data.get("results")
    if not isinstance(entries, list):
        raise MalformedResponseError("results が配列ではありません", raw_text)

    results = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        index = entry.get("index")
        if isinstance(index, str) and index.strip().isdigit():
            index = int(index)
        if not isinstance(index, int) or isinstance(index, bool):
            LOGGER.warning("Dropping rewrite result without an index: %r", entry)
            continue
        corrections = normalize_corrections(entry)
        if not corrections:
            LOGGER.warning("Dropping rewrite result %d without corrections", index)
            continue
        results.append(RewriteResult(index=index, corrections=corrections))
    return results
