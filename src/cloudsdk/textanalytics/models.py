from __future__ import annotations

from dataclasses import dataclass, field

from cloudsdk.core.http import Json


@dataclass(frozen=True)
class TextDocumentInput:
    id: str
    text: str
    language: str | None = None

    def to_json(self) -> Json:
        body: Json = {"id": self.id, "text": self.text}
        if self.language:
            body["language"] = self.language
        return body


@dataclass(frozen=True)
class TextAnalyticsError:
    code: str
    message: str

    @classmethod
    def from_json(cls, raw: Json) -> "TextAnalyticsError":
        # Document errors nest the real cause under "innererror".
        inner = raw.get("innererror") or raw
        return cls(code=inner.get("code", ""), message=inner.get("message", ""))


@dataclass(frozen=True)
class CategorizedEntity:
    text: str
    category: str
    subcategory: str | None = None
    offset: int | None = None
    length: int | None = None
    confidence_score: float | None = None

    @property
    def type(self) -> str:
        return self.category

    @classmethod
    def from_json(cls, raw: Json) -> "CategorizedEntity":
        return cls(
            text=raw["text"],
            category=raw.get("category") or raw.get("type", ""),
            subcategory=raw.get("subcategory") or raw.get("subtype"),
            offset=raw.get("offset"),
            length=raw.get("length"),
            confidence_score=raw.get("confidenceScore"),
        )


@dataclass(frozen=True)
class RecognizeEntitiesResult:
    """Entities for one input document, or the error that document hit.

    A failed document does not fail the batch; check `error` per result.
    """
    id: str
    entities: list[CategorizedEntity] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: TextAnalyticsError | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None
