from __future__ import annotations

import json

import pytest

from proofing_api.errors import MalformedResponseError
from proofing_api.models import CATEGORIES
from proofing_api.services.response_normalizer import (
    extract_json_object,
    normalize_corrections,
    normalize_report,
    normalize_rewrite,
)

TYPO = {"context": "今日は晴天なりです。", "original": "晴天なり", "corrections": ["晴天"], "reason": "衍字"}


def test_fenced_report_is_extracted() -> None:
    body = json.dumps({"factCheck": [], "typoCheck": [TYPO]}, ensure_ascii=False)
    raw = f"以下が結果です。\n```json\n{body}\n```\nご確認ください。"

    report = normalize_report(raw)

    assert report.typoCheck[0].original == "晴天なり"
    assert report.typoCheck[0].corrections == ["晴天"]


def test_every_category_is_present_even_when_missing() -> None:
    report = normalize_report('{"factCheck": []}')
    dumped = report.model_dump()

    assert set(dumped) == set(CATEGORIES)
    assert all(dumped[c] == [] for c in CATEGORIES)


def test_non_list_category_becomes_empty_and_unknown_is_dropped() -> None:
    report = normalize_report('{"factCheck": null, "toneCheck": "なし", "styleCheck": [1]}')
    dumped = report.model_dump()

    assert dumped["factCheck"] == []
    assert dumped["toneCheck"] == []
    assert "styleCheck" not in dumped


def test_legacy_singular_correction_is_lifted() -> None:
    legacy = {"context": "c", "original": "サーバ", "correction": "サーバー", "reason": "表記"}
    report = normalize_report(json.dumps({"factCheck": [], "notationCheck": [legacy]}, ensure_ascii=False))

    assert report.notationCheck[0].corrections == ["サーバー"]


def test_singular_correction_leads_existing_list() -> None:
    assert normalize_corrections({"correction": "B", "corrections": ["A", "B"]}) == ["B", "A"]
    assert normalize_corrections({"corrections": "単独"}) == ["単独"]
    assert normalize_corrections({"corrections": ["", "  ", None]}) == []


def test_findings_without_corrections_or_original_are_dropped() -> None:
    data = {
        "factCheck": [
            {"context": "c", "original": "x", "reason": "r"},
            {"context": "c", "original": "", "corrections": ["y"]},
            "not an object",
            {"context": "c", "original": "z", "corrections": ["zz"]},
        ]
    }
    report = normalize_report(json.dumps(data))

    assert [f.original for f in report.factCheck] == ["z"]


def test_stray_braces_in_prose_fall_back_to_balanced_scan() -> None:
    raw = 'メモ {未確定} です。結果: {"factCheck": [], "linkCheck": []} 以上 {補足}'

    assert extract_json_object(raw, "factCheck") == {"factCheck": [], "linkCheck": []}


def test_no_json_raises_with_excerpt() -> None:
    raw = "申し訳ありませんが、この原稿は校正できません。" * 100

    with pytest.raises(MalformedResponseError) as excinfo:
        normalize_report(raw)

    payload = excinfo.value.to_payload()
    assert payload["error"]
    assert payload["details"] == raw[:1000]
    assert len(payload["rawResponse"]) == 1000


def test_unparseable_json_raises() -> None:
    with pytest.raises(MalformedResponseError):
        normalize_report('{"factCheck": [ {"original": "x", }')


def test_rewrite_results_are_normalized() -> None:
    raw = """```json
{"results": [
  {"index": "1", "corrections": ["案A", "案B"]},
  {"index": 0, "correction": "案C"},
  {"corrections": ["番号なし"]},
  {"index": 2, "corrections": []}
]}
```"""

    results = normalize_rewrite(raw)

    assert [(r.index, r.corrections) for r in results] == [(1, ["案A", "案B"]), (0, ["案C"])]


def test_rewrite_results_must_be_a_list() -> None:
    with pytest.raises(MalformedResponseError):
        normalize_rewrite('{"results": {"index": 0}}')
