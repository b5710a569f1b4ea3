import asyncio
import logging
from typing import Any, Dict, List
from urllib.parse import urlparse, urlunparse

import httpx

from codejudge.common.errors import JudgeTimeout, JudgeUnavailable
from codejudge.core.config import get_settings
from .schemas import Judge0SubmissionRequest, JudgeResult, TestInvocation

logger = logging.getLogger(__name__)

RESULT_FIELDS = "token,stdout,stderr,compile_output,message,time,memory,status"


def _mask_headers(h: dict) -> dict:
    masked = {}
    for k, v in (h or {}).items():
        if k.lower() in ("x-rapidapi-key",):
            masked[k] = "[REDACTED]"
        else:
            masked[k] = v
    return masked


def _chunks(items: List[Any], size: int) -> List[List[Any]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class Judge0Service:
    """Batch submit / batch poll client for a Judge0 sandbox.

    Pure I/O: no state survives between calls apart from configuration.
    """

    def __init__(self):
        self.settings = get_settings()
        base = (self.settings.judge0_api_url or "").strip()
        if base and not base.startswith("http://") and not base.startswith("https://"):
            base = "http://" + base
        # Self-hosted Judge0 CE listens on 2358 when no port is given
        if base and not self.settings.judge0_host:
            parsed = urlparse(base)
            if ":" not in parsed.netloc:
                base = urlunparse(parsed._replace(netloc=f"{parsed.netloc}:2358"))
        self.base_url = base.rstrip("/")
        self.headers = {"Content-Type": "application/json"}
        if self.settings.judge0_api_key and self.settings.judge0_host:
            self.headers.update({
                "X-RapidAPI-Key": self.settings.judge0_api_key,
                "X-RapidAPI-Host": self.settings.judge0_host,
            })
        self.poll_interval: float = self.settings.judge0_poll_interval_s
        self.max_poll_attempts: int = self.settings.judge0_max_poll_attempts
        self.max_batch_size: int = self.settings.judge0_max_batch_size

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Perform an HTTP request against the configured Judge0 base URL.

        Connection failures are retried with a short backoff and then raised as
        JudgeUnavailable so callers surface a 5xx instead of an ambiguous timeout.
        """
        if not self.base_url:
            raise JudgeUnavailable("Judge0 base URL is not configured (JUDGE0_BASE_URL).")
        if not path.startswith("/"):
            path = "/" + path
        url = self.base_url + path
        logger.debug("Judge0 request: %s %s headers=%s", method, url, _mask_headers(self.headers))
        timeout = httpx.Timeout(connect=3.0, read=self.settings.judge0_timeout_s, write=5.0, pool=5.0)
        limits = httpx.Limits(max_connections=20, max_keepalive_connections=10)
        max_retries = 3
        for attempt in range(max_retries):
            try:
                async with httpx.AsyncClient(timeout=timeout, limits=limits) as client:
                    return await client.request(method, url, headers=self.headers, **kwargs)
            except (httpx.ConnectTimeout, httpx.ConnectError) as e:
                if attempt < max_retries - 1:
                    await asyncio.sleep(0.5 * (attempt + 1))
                    continue
                raise JudgeUnavailable(f"Failed to connect to Judge0 at {self.base_url}: {e}") from e
            except httpx.HTTPError as e:
                raise JudgeUnavailable(f"Judge0 request failed: {e}") from e
        raise JudgeUnavailable("Judge0 request failed")  # pragma: no cover

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise JudgeUnavailable(f"Malformed Judge0 response: {resp.text[:200]}") from e

    # -------- Batch operations --------
    async def submit_batch(self, cases: List[TestInvocation]) -> List[str]:
        """Submit cases and return their tokens in the same order."""
        tokens: List[str] = []
        for chunk in _chunks(list(cases), self.max_batch_size):
            reqs = [
                Judge0SubmissionRequest(
                    source_code=c.source_code,
                    language_id=c.language_id,
                    stdin=c.stdin,
                    expected_output=c.expected_output,
                ).model_dump(exclude_none=True)
                for c in chunk
            ]
            resp = await self._request(
                "POST",
                "/submissions/batch?base64_encoded=false",
                json={"submissions": reqs},
            )
            if resp.status_code not in (200, 201):
                raise JudgeUnavailable(f"Batch submit failed: {resp.status_code} {resp.text[:200]}")
            data = self._json(resp)
            items = data.get("submission_tokens") if isinstance(data, dict) else data
            chunk_tokens = [
                item.get("token")
                for item in (items or [])
                if isinstance(item, dict) and item.get("token")
            ]
            if len(chunk_tokens) != len(chunk):
                raise JudgeUnavailable("Token count mismatch in batch response")
            tokens.extend(chunk_tokens)
        logger.info("judge0.batch_submitted cases=%d", len(tokens))
        return tokens

    async def fetch_batch(self, tokens: List[str]) -> List[JudgeResult]:
        """One status round-trip per chunk; results are aligned to ``tokens``."""
        by_token: Dict[str, JudgeResult] = {}
        for chunk in _chunks(list(tokens), self.max_batch_size):
            resp = await self._request(
                "GET",
                f"/submissions/batch?tokens={','.join(chunk)}&base64_encoded=false&fields={RESULT_FIELDS}",
            )
            if resp.status_code != 200:
                raise JudgeUnavailable(f"Batch get failed: {resp.status_code} {resp.text[:200]}")
            data = self._json(resp)
            arr = data.get("submissions", []) if isinstance(data, dict) else data
            if not isinstance(arr, list) or len(arr) != len(chunk):
                raise JudgeUnavailable("Result count mismatch in batch status response")
            for tok, item in zip(chunk, arr):
                if not isinstance(item, dict):
                    raise JudgeUnavailable("Malformed entry in batch status response")
                try:
                    result = JudgeResult.from_payload(item)
                except ValueError as e:
                    raise JudgeUnavailable(f"Malformed Judge0 result: {e}") from e
                by_token[result.token or tok] = result.model_copy(update={"token": result.token or tok})
        try:
            return [by_token[tok] for tok in tokens]
        except KeyError as e:
            raise JudgeUnavailable(f"Judge0 omitted token {e.args[0]}") from e

    async def poll_until_complete(self, tokens: List[str]) -> List[JudgeResult]:
        """Poll until every token is terminal, bounded by ``max_poll_attempts``."""
        if not tokens:
            return []
        for attempt in range(1, self.max_poll_attempts + 1):
            results = await self.fetch_batch(tokens)
            if all(r.status.is_terminal for r in results):
                logger.info("judge0.batch_complete cases=%d rounds=%d", len(results), attempt)
                return results
            if attempt < self.max_poll_attempts:
                await asyncio.sleep(self.poll_interval)
        logger.warning("judge0.poll_ceiling_reached cases=%d attempts=%d", len(tokens), self.max_poll_attempts)
        raise JudgeTimeout(f"Judge0 did not finish within {self.max_poll_attempts} poll rounds")

    async def execute(self, cases: List[TestInvocation]) -> List[JudgeResult]:
        """Submit a batch then poll until all finished; results follow the input order."""
        if not cases:
            return []
        tokens = await self.submit_batch(cases)
        return await self.poll_until_complete(tokens)


judge0_service = Judge0Service()
