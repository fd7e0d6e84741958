"""LinkedIn organization shares adapter (bearer token from a prior OAuth flow)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List

from ..config import LINKEDIN_ACCESS_TOKEN, LINKEDIN_ORGANIZATION_URN
from ..models import Platform, RawItem, Reliability
from ..utils import clean_text, truncate
from .base import SOCIAL_GROUP, SourceAdapter

LINKEDIN_SHARES_URL: str = "https://api.linkedin.com/v2/shares"
LINKEDIN_PAGE_SIZE: int = 50
TITLE_LIMIT: int = 200
DESCRIPTION_LIMIT: int = 300


def _share_text(share: dict) -> str:
    text: Any = share.get("text")
    if isinstance(text, dict):
        text = text.get("text")
    return clean_text(text if isinstance(text, str) else None)


def _share_time(share: dict) -> str | None:
    created = (share.get("created") or {}).get("time")
    if created is None:
        return None
    # epoch milliseconds
    return datetime.fromtimestamp(created / 1000, tz=timezone.utc).isoformat()


class LinkedInAdapter(SourceAdapter):
    name = "LinkedIn"
    group = SOCIAL_GROUP
    platform = Platform.LINKEDIN

    def __init__(
        self,
        access_token: str | None = LINKEDIN_ACCESS_TOKEN,
        organization_urn: str | None = LINKEDIN_ORGANIZATION_URN,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.access_token = access_token
        self.organization_urn = organization_urn

    def is_enabled(self) -> bool:
        return bool(self.access_token and self.organization_urn)

    def _fetch_items(self) -> List[RawItem]:
        payload = self._get_json(
            LINKEDIN_SHARES_URL,
            params={"q": "owners", "owners": self.organization_urn, "count": LINKEDIN_PAGE_SIZE},
            headers={"Authorization": f"Bearer {self.access_token}"},
        )

        items: List[RawItem] = []
        for share in payload.get("elements") or []:
            text = _share_text(share)
            url = share.get("permalink") or ""
            if not url:
                continue
            items.append(
                RawItem(
                    title=truncate(text, TITLE_LIMIT, ellipsis=True) or "LinkedIn Post",
                    url=url,
                    source_name="LinkedIn",
                    platform=Platform.LINKEDIN,
                    description=truncate(text, DESCRIPTION_LIMIT),
                    body=text,
                    published_at=_share_time(share),
                    source_reliability=Reliability.HIGH,
                    author=share.get("owner") or share.get("author"),
                    external_id=share.get("id"),
                )
            )
        return items

__all__ = ["LinkedInAdapter"]
