from __future__ import annotations

import logging

from cloudsdk.config import Settings
from cloudsdk.core.pagination import FeedIterator
from cloudsdk.cosmos.client import CosmosClient
from cloudsdk.keyvault.client import SecretClient
from cloudsdk.textanalytics.client import TextAnalyticsClient
from cloudsdk.textanalytics.models import RecognizeEntitiesResult


log = logging.getLogger("cloudsdk")


async def print_feed(feed: FeedIterator, *, drain: bool) -> int:
    """Print a feed page by page (or drained) and return the item count."""
    if drain:
        items = await feed.to_list()
        for item in items:
            print(item)
        print(f"total={len(items)}")
        return len(items)

    total = 0
    page_no = 0
    async for page in feed:
        page_no += 1
        total += len(page)
        print(f"page={page_no} items={len(page)} continuation={page.continuation!r}")
        for item in page.items:
            print(f"  {item}")
    print(f"total={total} pages={page_no}")
    return total


def print_entities(results: list[RecognizeEntitiesResult]) -> int:
    """Print recognized entities per document and return how many documents failed."""
    failed = 0
    for result in results:
        if result.error is not None:
            failed += 1
            print(f"document={result.id} error={result.error.code}: {result.error.message}")
            continue
        for entity in result.entities:
            print(f"Found entity {entity.text} of type {entity.type}")
    return failed


async def run_app(
    *,
    service: str,
    database: str | None = None,
    page_size: int | None = None,
    drain: bool = False,
    texts: list[str] | None = None,
) -> None:
    settings = Settings.load()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Keep listing output readable (httpx can be very chatty at INFO).
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    page_size = page_size or settings.feed_page_size

    if service in {"databases", "users"}:
        cosmos = CosmosClient.from_settings(settings)
        log.info("Cloud env=%s cosmos=%s", settings.cloud_env, cosmos.base_url)
        async with cosmos:
            if service == "databases":
                await print_feed(cosmos.databases.read_all(max_item_count=page_size), drain=drain)
                return
            if not database:
                raise ValueError("--database is required to list users")
            users = cosmos.databases.get(database).users
            await print_feed(users.read_all(max_item_count=page_size), drain=drain)
        return

    if service in {"secrets", "deleted-secrets"}:
        vault = SecretClient.from_settings(settings)
        log.info("Cloud env=%s vault=%s", settings.cloud_env, vault.base_url)
        async with vault:
            if service == "secrets":
                feed = vault.list_properties_of_secrets(max_page_size=page_size)
            else:
                feed = vault.list_deleted_secrets(max_page_size=page_size)
            await print_feed(feed, drain=drain)
        return

    if service == "entities":
        if not texts:
            raise ValueError("--text is required to recognize entities")
        analytics = TextAnalyticsClient.from_settings(settings)
        log.info("Text analytics endpoint=%s", analytics.base_url)
        async with analytics:
            print_entities(await analytics.recognize_entities(texts))
        return

    raise ValueError(f"Unknown service: {service}")
