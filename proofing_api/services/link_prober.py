import logging
import re
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List

import requests
import urllib3

from proofing_api.errors import ProbeFailure
from proofing_api.models import UrlProbeResult

LOGGER = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; ProofingLinkChecker/1.0)"

# Stops at whitespace, quotes and brackets, including the full-width ones common in Japanese copy.
URL_PATTERN = re.compile(r"https?://[^\s<>\"'()\[\]{}「」『』（）【】、。]+")
TRAILING_PUNCTUATION = ".,;:!?"

def extract_urls(text: str) -> List[str]:
    """Return every http(s) URL in the text, de-duplicated in first-seen order."""
    seen = set()
    urls = []
    for match in URL_PATTERN.finditer(text or ""):
        url = match.group(0).rstrip(TRAILING_PUNCTUATION)
        if url in seen or len(url) <= len("https://"):
            continue
        seen.add(url)
        urls.append(url)
    return urls

def _request_status(url: str, timeout: float) -> int:
    headers = {"User-Agent": USER_AGENT}
    try:
        res = requests.head(url, headers=headers, timeout=timeout, allow_redirects=True)
        # Some servers refuse HEAD outright; fall back to a streamed GET so the body is never read.
        if res.status_code in (405, 501):
            res = requests.get(url, headers=headers, timeout=timeout, allow_redirects=True, stream=True)
            res.close()
        return res.status_code
    except requests.Timeout:
        raise ProbeFailure(url, "timeout")
    except requests.RequestException as e:
        raise ProbeFailure(url, str(e) or e.__class__.__name__)
    # urllib3 lets some host parse errors (LocationParseError) through requests unwrapped
    except (urllib3.exceptions.HTTPError, ValueError) as e:
        raise ProbeFailure(url, str(e) or e.__class__.__name__)

def _check(url: str, timeout: float) -> UrlProbeResult:
    try:
        status = _request_status(url, timeout)
    except ProbeFailure as failure:
        LOGGER.info("Link probe failed for %s: %s", url, failure.detail)
        return UrlProbeResult(url=url, reachable=False, status="error", detail=failure.detail)

    reachable = 200 <= status < 400
    if not reachable:
        LOGGER.info("Link probe for %s returned HTTP %s", url, status)
    return UrlProbeResult(
        url=url,
        reachable=reachable,
        status=status,
        detail=None if reachable else f"HTTP {status}",
    )

def _probe_all(urls: List[str], timeout: float) -> List[UrlProbeResult]:
    # One worker per URL, so every probe starts at once and the shared wait is each probe's own deadline.
    pool = ThreadPoolExecutor(max_workers=len(urls))
    futures = [pool.submit(_check, url, timeout) for url in urls]
    try:
        wait(futures, timeout=timeout)
    finally:
        # Abandoned requests finish in the background, bounded by their own socket timeouts.
        pool.shutdown(wait=False, cancel_futures=True)

    results = []
    for url, future in zip(urls, futures):
        if future.done() and not future.cancelled():
            results.append(future.result())
        else:
            LOGGER.info("Link probe for %s exceeded %.1fs deadline", url, timeout)
            results.append(UrlProbeResult(url=url, reachable=False, status="error", detail="timeout"))
    return results

def probe_url(url: str, timeout: float) -> UrlProbeResult:
    """Check one URL, giving up after ``timeout`` seconds of wall-clock time including redirects."""
    return _probe_all([url], timeout)[0]

def probe_links(text: str, sample_cap: int, timeout: float) -> List[UrlProbeResult]:
    """Probe the first ``sample_cap`` URLs of the manuscript in parallel, in extraction order."""
    urls = extract_urls(text)[:sample_cap]
    if not urls:
        return []

    results = _probe_all(urls, timeout)
    LOGGER.debug("Probed %d links, %d unreachable", len(results), sum(not r.reachable for r in results))
    return results
