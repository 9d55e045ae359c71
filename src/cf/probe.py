"""Connectivity check against a page every Codeforces visitor can see."""

import logging
from typing import TYPE_CHECKING

from cf.auth import is_challenge_page
from cf.exceptions import ChallengeBlockedError
from cf.models import ProbeResult, ProbeStatus

if TYPE_CHECKING:
    from cf.client import CodeforcesClient

logger = logging.getLogger(__name__)

PROBE_PATH = "/contest/1/problem/A"
PAGE_MARKERS = ("problemset", "problem-statement")


def check_connection(client: "CodeforcesClient") -> ProbeResult:
    """Fetch the probe page, logging in first if needed, and classify what came back.

    Network and credential errors are raised, not reported as a result.
    """
    try:
        response = client.get(PROBE_PATH)
    except ChallengeBlockedError as e:
        logger.warning("Challenge page while probing %s", PROBE_PATH)
        return ProbeResult(ProbeStatus.CHALLENGE_BLOCKED, e.message)

    body = response.text
    if is_challenge_page(body):
        return ProbeResult(ProbeStatus.CHALLENGE_BLOCKED, ChallengeBlockedError().message)

    if response.status_code >= 400:
        return ProbeResult(ProbeStatus.UNHEALTHY, f"HTTP {response.status_code} from {PROBE_PATH}")

    if not any(marker in body for marker in PAGE_MARKERS):
        return ProbeResult(
            ProbeStatus.UNHEALTHY, "Response doesn't look like a Codeforces problem page"
        )

    logger.info("Connected to %s as %s", client.host, client.current_handle())
    return ProbeResult(ProbeStatus.HEALTHY)
