import logging
from typing import List

from proofing_api.models import Finding, FindingsReport, UrlProbeResult

LOGGER = logging.getLogger(__name__)

LINK_FIX_ADVICE = "リンク先を確認し、正しいURLに修正してください"

def _unreachable_finding(probe: UrlProbeResult) -> Finding:
    cause = probe.detail or f"HTTP {probe.status}"
    return Finding(
        context=f"記事内のURL: {probe.url}",
        original=probe.url,
        corrections=[LINK_FIX_ADVICE],
        reason=f"URLに直接アクセスして確認したところ、到達できませんでした（{cause}）",
    )

def reconcile_link_findings(report: FindingsReport, probe_results: List[UrlProbeResult]) -> FindingsReport:
    """
    Append a linkCheck finding for every unreachable URL the model did not report itself.

    A URL counts as already reported when it appears anywhere inside an existing
    linkCheck ``original``, so a second pass over the output adds nothing.
    """
    link_findings = list(report.linkCheck)

    for probe in probe_results:
        if probe.reachable:
            continue
        if any(probe.url in f.original for f in link_findings):
            continue
        LOGGER.info("Adding unreachable link finding for %s", probe.url)
        link_findings.append(_unreachable_finding(probe))

    return report.model_copy(update={"linkCheck": link_findings})
