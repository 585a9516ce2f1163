import asyncio
import logging
from typing import Optional, Dict

import httpx

from ponscript.pon_serialize import decode_text

logger = logging.getLogger(__name__)


async def http_get_text(url: str, config: Optional[Dict] = None) -> str:
    """
    Fetch `url` and return the decoded body.

    config keys (all optional):
      - timeout: seconds per attempt (default 5.0)
      - retries: extra attempts after the first failure (default 2)
      - backoff: base delay in seconds, doubled per attempt (default 0.2)
      - headers: extra request headers
    Non-2xx responses raise after retries are exhausted.
    """
    cfg = dict(config or {})
    timeout = float(cfg.pop('timeout', 5.0))
    retries = int(cfg.pop('retries', 2))
    backoff = float(cfg.pop('backoff', 0.2))
    headers = dict(cfg.pop('headers', {}))

    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        for attempt in range(retries + 1):
            try:
                resp = await client.get(url, headers=headers)
                if 200 <= resp.status_code < 300:
                    return decode_text(resp.content, content_type=resp.headers.get("Content-Type"))
                preview = (resp.text or "")[:200]
                raise RuntimeError(f"HTTP {resp.status_code} for {url}: {preview}")
            except (httpx.HTTPError, RuntimeError) as e:
                if attempt < retries:
                    logger.debug("GET %s failed (%s), retrying", url, e)
                    await asyncio.sleep(backoff * (2 ** attempt))
                    continue
                raise
