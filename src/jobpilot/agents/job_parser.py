"""Structured extraction of job postings, from text or from a URL."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup
from pydantic import BaseModel

from ..core.config import AgentSettings
from ..core.errors import fetch_error, invalid_input
from ..core.invoke import build_request, run_agent
from ..core.parsing import ResponseError, json_validator
from ..core.retry import Sleep
from ..models.agent import AgentError, AgentResponse
from ..models.job import JOB_TYPES, WORK_MODES, ParsedJobData
from ..providers.base import ModelClient
from ..utils.sanitize import sanitize_error
from .common import JSON_ONLY, ensure_object, is_blank

logger = logging.getLogger(__name__)

AGENT_KEY = "job_parser"

MIN_CONTENT_CHARS = 100
MAX_CONTENT_CHARS = 15000

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

UNWANTED = "script, style, nav, header, footer, iframe, noscript, .cookie-banner, #cookie-banner"

# Ordered from most to least specific; body is the last resort.
CONTENT_SELECTORS = [
    "article",
    '[role="main"]',
    "main",
    ".job-description",
    ".job-detail",
    ".job-content",
    "#job-description",
    ".description",
    '[data-automation-id="jobPostingDescription"]',
    ".jobdetails",
    "body",
]

SYSTEM_PROMPT = f"""You are an expert job posting analyzer. Extract structured information from job posting content.

Guidelines:
1. job_description is a comprehensive summary of the key responsibilities and requirements.
2. location is "City, State" or "City, Country".
3. salary_range includes the currency, like "$100k - $150k". Use null if not mentioned.
4. job_type is one of FULL_TIME, PART_TIME, CONTRACT, INTERNSHIP, TEMPORARY. Default FULL_TIME.
5. work_mode is REMOTE if the posting says remote, HYBRID if hybrid, otherwise ONSITE.

{JSON_ONLY}

{{
  "company": "...",
  "title": "...",
  "job_description": "...",
  "location": "...",
  "salary_range": null,
  "job_type": "FULL_TIME | PART_TIME | CONTRACT | INTERNSHIP | TEMPORARY",
  "work_mode": "REMOTE | HYBRID | ONSITE"
}}"""


class JobParseInput(BaseModel):
    content: str = ""
    source_url: Optional[str] = None


def validate_job_parse_input(data: JobParseInput) -> Optional[AgentError]:
    if is_blank(data.content):
        return invalid_input(["Job posting content is required"])
    if len(data.content.strip()) < MIN_CONTENT_CHARS:
        return invalid_input([f"Job posting content must be at least {MIN_CONTENT_CHARS} characters"])
    return None


def build_user_prompt(data: JobParseInput) -> str:
    return (
        "Analyze this job posting and extract structured information.\n\n"
        f"JOB POSTING CONTENT:\n{data.content}"
    )


def _clean(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def normalize_job(data: Any) -> dict:
    """Trim strings and fall back to defaults for optional fields."""
    data = ensure_object(data)
    for key in ("company", "title", "job_description"):
        data[key] = _clean(data.get(key))

    location = _clean(data.get("location"))
    data["location"] = location if isinstance(location, str) and location else "Not specified"

    salary = _clean(data.get("salary_range"))
    data["salary_range"] = salary if isinstance(salary, str) and salary else None

    if data.get("job_type") not in JOB_TYPES:
        data["job_type"] = "FULL_TIME"
    if data.get("work_mode") not in WORK_MODES:
        data["work_mode"] = "ONSITE"
    return data


async def parse_job_posting(
    client: ModelClient,
    settings: AgentSettings,
    data: JobParseInput,
    sleep: Optional[Sleep] = None,
) -> AgentResponse[ParsedJobData]:
    error = validate_job_parse_input(data)
    if error:
        logger.warning("Job parsing rejected: %s", error.message)
        return AgentResponse.fail(error)

    logger.info("Parsing job posting (%d chars, source=%s)", len(data.content), data.source_url)
    request = build_request(settings, build_user_prompt(data), system_prompt=SYSTEM_PROMPT)
    response = await run_agent(
        client,
        settings,
        request,
        json_validator(ParsedJobData, normalize=normalize_job),
        agent=AGENT_KEY,
        sleep=sleep,
    )

    if response.success:
        logger.info("Job parsed: %s at %s", response.data.title, response.data.company)
    return response


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


def extract_posting_text(html: str, max_chars: int = MAX_CONTENT_CHARS) -> str:
    """Main-content text of a posting page, whitespace collapsed.

    Raises:
        ValueError: when too little text remains to be a posting.
    """
    soup = BeautifulSoup(html, "html.parser")
    for element in soup.select(UNWANTED):
        element.decompose()

    content = ""
    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        content = element.get_text(" ")
        if len(content) > 200:
            break

    content = re.sub(r"\s+", " ", content).strip()
    if len(content) < MIN_CONTENT_CHARS:
        raise ValueError("Insufficient content extracted. The page may be access-restricted or empty.")
    if len(content) > max_chars:
        content = content[:max_chars] + "..."
    return content


def _check_url(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ResponseError(fetch_error("URL must be an http(s) address with a domain", url))


async def fetch_posting_text(
    url: str,
    timeout: float = 15.0,
    max_chars: int = MAX_CONTENT_CHARS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Download a posting page and return its readable text.

    Raises:
        ResponseError: carrying a ``FETCH_ERROR`` when the page cannot be
            fetched or holds too little text.
    """
    _check_url(url)
    headers = {
        "User-Agent": USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }

    logger.info("Fetching job posting: %s", url)
    try:
        async with httpx.AsyncClient(
            timeout=timeout, follow_redirects=True, transport=transport
        ) as http:
            response = await http.get(url, headers=headers)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise ResponseError(
            fetch_error(f"Failed to fetch job posting (HTTP {e.response.status_code})", url)
        ) from e
    except httpx.HTTPError as e:
        raise ResponseError(
            fetch_error(f"Failed to fetch job posting: {sanitize_error(str(e)) or type(e).__name__}", url)
        ) from e

    try:
        text = extract_posting_text(response.text, max_chars=max_chars)
    except ValueError as e:
        raise ResponseError(fetch_error(str(e), url)) from e

    logger.info("Fetched %d chars of posting text from %s", len(text), url)
    return text


async def parse_job_url(
    client: ModelClient,
    settings: AgentSettings,
    url: str,
    fetch_config: Optional[dict] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep: Optional[Sleep] = None,
) -> AgentResponse[ParsedJobData]:
    """Fetch ``url`` and parse the posting; fetch failures return ``FETCH_ERROR``."""
    fetch_config = fetch_config or {}
    try:
        content = await fetch_posting_text(
            url,
            timeout=fetch_config.get("timeout_seconds", 15),
            max_chars=fetch_config.get("max_chars", MAX_CONTENT_CHARS),
            transport=transport,
        )
    except ResponseError as e:
        logger.error("Job posting fetch failed for %s: %s", url, e.error.message)
        return AgentResponse.fail(e.error)

    return await parse_job_posting(
        client, settings, JobParseInput(content=content, source_url=url), sleep=sleep
    )
