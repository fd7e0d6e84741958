#!/usr/bin/env python3
"""Command line trigger: ``python -m geo_alerts {cycle,fetch,analyze,test-email}``."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from typing import Any, Dict, List, Sequence

from .exceptions import FatalPipelineFailure
from .logging_config import configure_logging
from .models import Platform, RawItem, Reliability
from .services.notifications import SMTPTransport
from .sources import NEWS_GROUP, SOCIAL_GROUP
from .workflows.event_pipeline import build_default_pipeline

logger = logging.getLogger("geo_alerts")


def _item_to_dict(item: RawItem) -> Dict[str, Any]:
    return {
        "title": item.title,
        "url": item.url,
        "sourceName": item.source_name,
        "platform": item.platform.value,
        "description": item.description,
        "body": item.body,
        "publishedAt": item.published_at,
        "sourceReliability": item.source_reliability.value,
        "engagementMetrics": dict(item.engagement_metrics),
        "author": item.author,
        "externalId": item.external_id,
    }


def _item_from_dict(data: Dict[str, Any]) -> RawItem:
    return RawItem(
        title=data["title"],
        url=data.get("url", ""),
        source_name=data.get("sourceName", ""),
        platform=Platform(data.get("platform", Platform.NEWS.value)),
        description=data.get("description", ""),
        body=data.get("body", ""),
        published_at=data.get("publishedAt"),
        source_reliability=Reliability(data.get("sourceReliability", Reliability.MEDIUM.value)),
        engagement_metrics=data.get("engagementMetrics") or {},
        author=data.get("author"),
        external_id=data.get("externalId"),
    )


def _load_items(entries: List[Any]) -> List[RawItem]:
    """Convert decoded JSON entries, skipping the ones that do not describe a raw item."""
    items: List[RawItem] = []
    for index, entry in enumerate(entries):
        try:
            items.append(_item_from_dict(entry))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning("Skipping input item %d: %s", index, exc)
    return items


def _dump(payload: Any) -> None:
    json.dump(payload, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="geo_alerts", description=__doc__)
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL (e.g. DEBUG)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("cycle", help="fetch, analyze, store and notify once")

    fetch = sub.add_parser("fetch", help="fetch raw items from one source group")
    fetch.add_argument("--group", choices=(NEWS_GROUP, SOCIAL_GROUP), default=NEWS_GROUP)

    analyze = sub.add_parser("analyze", help="analyze raw items without storing them")
    analyze.add_argument(
        "input",
        nargs="?",
        type=argparse.FileType("r"),
        help="JSON list of raw items as printed by `fetch` (default: fetch all groups)",
    )

    test_email = sub.add_parser("test-email", help="send an SMTP test message")
    test_email.add_argument("--to", default="test@example.com")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        configure_logging(args.log_level.upper())

    if args.command == "test-email":
        return 0 if SMTPTransport().test_configuration(args.to) else 1

    pipeline = build_default_pipeline()

    if args.command == "fetch":
        _dump([_item_to_dict(item) for item in pipeline.run_fetch_only(args.group)])
        return 0

    if args.command == "analyze":
        if args.input is not None:
            with args.input:
                items: List[RawItem] = _load_items(json.load(args.input))
        else:
            items = pipeline.aggregator.run()
        _dump([event.to_document() for event in pipeline.run_analyze_only(items)])
        return 0

    try:
        result = pipeline.run_full_cycle()
    except FatalPipelineFailure as exc:
        logger.error("Cycle aborted: %s", exc)
        return 2
    _dump({**result.to_dict(), "summary": dataclasses.asdict(result.summary)})
    return 0


if __name__ == "__main__":
    sys.exit(main())
