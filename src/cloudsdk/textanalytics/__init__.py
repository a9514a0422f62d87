from cloudsdk.textanalytics.client import TextAnalyticsClient
from cloudsdk.textanalytics.models import (
    CategorizedEntity,
    RecognizeEntitiesResult,
    TextAnalyticsError,
    TextDocumentInput,
)

__all__ = [
    "CategorizedEntity",
    "RecognizeEntitiesResult",
    "TextAnalyticsClient",
    "TextAnalyticsError",
    "TextDocumentInput",
]
