"""Financial news capability — queries the external news service."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field

from .base import Capability, failure

logger = logging.getLogger(__name__)


class FinancialNewsArgs(BaseModel):
    max_results: int = Field(default=5, ge=1, le=50)


class GetFinancialNewsCapability(Capability):
    """Fetch the latest financial headlines."""

    args_model = FinancialNewsArgs

    def __init__(self, base_url: str, timeout: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "get_financial_news"

    @property
    def description(self) -> str:
        return (
            "Return the latest financial news headlines with source, "
            "publication date and link."
        )

    async def execute(self, args: FinancialNewsArgs, caller_id: int) -> dict[str, Any]:
        """Query the news service and normalize its articles."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(
                    f"{self._base_url}/news",
                    params={"limit": args.max_results},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.ConnectError:
            logger.warning("News service unreachable at %s", self._base_url)
            return failure("the news service is currently unavailable")
        except httpx.TimeoutException:
            logger.warning("News service timed out after %.1fs", self._timeout)
            return failure("the news service did not answer in time")
        except httpx.HTTPStatusError as exc:
            return failure(f"the news service returned an error (status {exc.response.status_code})")
        except ValueError:
            logger.warning("News service at %s returned a non-JSON body", self._base_url)
            return failure("the news service returned an unreadable response")

        articles = data.get("articles", []) if isinstance(data, dict) else []
        news = [self._normalize(a) for a in articles[: args.max_results]]
        headlines = "\n".join(
            f"- {item['title']} ({item['source']})" if item["source"] else f"- {item['title']}"
            for item in news
        )
        return {"success": True, "news": news, "count": len(news), "headlines": headlines}

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize(article: dict) -> dict[str, Any]:
        source = article.get("source", "")
        if isinstance(source, dict):
            source = source.get("name", "")
        return {
            "title": article.get("title", ""),
            "description": article.get("description", ""),
            "source": source,
            "published_at": article.get("publishedAt") or article.get("published_at", ""),
            "url": article.get("url", ""),
        }
