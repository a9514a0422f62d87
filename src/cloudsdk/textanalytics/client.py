from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from cloudsdk.config import Settings
from cloudsdk.core.http import Json, ServiceClient
from cloudsdk.textanalytics.models import (
    CategorizedEntity,
    RecognizeEntitiesResult,
    TextAnalyticsError,
    TextDocumentInput,
)


log = logging.getLogger(__name__)

API_PATH = "/text/analytics/v3.0"


def _as_inputs(documents: Sequence[str | TextDocumentInput], language: str | None) -> list[TextDocumentInput]:
    inputs: list[TextDocumentInput] = []
    for i, doc in enumerate(documents):
        if isinstance(doc, str):
            inputs.append(TextDocumentInput(id=str(i), text=doc, language=language))
        else:
            inputs.append(doc)
    return inputs


@dataclass
class TextAnalyticsClient(ServiceClient):
    api_key: str | None = field(default=None, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TextAnalyticsClient":
        if not settings.text_analytics_endpoint:
            raise RuntimeError("No TEXT_ANALYTICS_ENDPOINT configured")
        return cls(
            base_url=settings.text_analytics_endpoint.rstrip("/"),
            timeout_seconds=settings.http_timeout_seconds,
            api_key=settings.text_analytics_api_key,
        )

    def _auth_headers(self, *, method: str, url: str, **context: Any) -> dict[str, str]:
        if not self.api_key:
            raise RuntimeError("Text analytics endpoint called but no TEXT_ANALYTICS_API_KEY configured")
        return {"Ocp-Apim-Subscription-Key": self.api_key}

    async def recognize_entities(
        self,
        documents: Sequence[str | TextDocumentInput],
        *,
        language: str | None = "en",
        model_version: str | None = None,
    ) -> list[RecognizeEntitiesResult]:
        """Recognize named entities in a batch of documents.

        Plain strings get ids "0", "1", ... and `language`. Results come back
        in input order, one per document.
        """
        inputs = _as_inputs(documents, language)
        params: dict[str, Any] = {}
        if model_version:
            params["model-version"] = model_version

        data = await self.request(
            "POST",
            f"{API_PATH}/entities/recognition/general",
            params=params or None,
            json={"documents": [doc.to_json() for doc in inputs]},
        )

        by_id: dict[str, RecognizeEntitiesResult] = {}
        for raw in data.get("documents") or []:
            by_id[raw["id"]] = RecognizeEntitiesResult(
                id=raw["id"],
                entities=[CategorizedEntity.from_json(e) for e in raw.get("entities") or []],
                warnings=[w.get("message", "") for w in raw.get("warnings") or []],
            )
        for raw in data.get("errors") or []:
            by_id[raw["id"]] = RecognizeEntitiesResult(
                id=raw["id"],
                error=TextAnalyticsError.from_json(raw.get("error") or {}),
            )

        results: list[RecognizeEntitiesResult] = []
        for doc in inputs:
            result = by_id.get(doc.id)
            if result is None:
                # The service answers every document; a gap is reported, not dropped.
                log.warning("No result returned for document id=%s", doc.id)
                result = RecognizeEntitiesResult(
                    id=doc.id,
                    error=TextAnalyticsError(code="MissingResult", message="Service returned no result"),
                )
            results.append(result)
        return results
