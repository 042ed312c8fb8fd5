"""
OCR confidence aggregation.

Every OCR engine reports confidence differently. These helpers fold an
engine's raw numbers into one 0-100 scalar stored on the receipt.
"""

from enum import Enum
from typing import Iterable, Optional, Sequence, Union

# Google Vision omits confidence on some annotations
VISION_DEFAULT_ANNOTATION_CONFIDENCE = 0.9
# Used when Vision returns only the full-text annotation
VISION_FALLBACK_CONFIDENCE = 85.0


class OcrEngine(str, Enum):
    TESSERACT = 'tesseract'
    TEXTRACT = 'textract'
    GOOGLE_VISION = 'google_vision'


def clamp_confidence(value: Optional[float]) -> float:
    if value is None:
        return 0.0
    return max(0.0, min(100.0, float(value)))


def tesseract_confidence(value: Optional[float]) -> float:
    """Tesseract already reports a page confidence in 0-100."""
    return clamp_confidence(value)


def textract_confidence(field_confidences: Iterable[Optional[float]]) -> float:
    """
    Mean of Textract per-field confidences (0-100).

    Missing values count as 0, matching how AnalyzeExpense omits them.
    """
    values = [float(value or 0.0) for value in field_confidences]
    if not values:
        return 0.0
    return clamp_confidence(sum(values) / len(values))


def vision_confidence(annotation_confidences: Sequence[Optional[float]]) -> float:
    """
    Google Vision confidence from text annotation confidences (0-1).

    The first annotation is the full-text block and is skipped.
    """
    if not annotation_confidences:
        return 0.0

    values = [
        VISION_DEFAULT_ANNOTATION_CONFIDENCE if value is None else float(value)
        for value in annotation_confidences[1:]
    ]
    values = [value for value in values if value > 0]
    if not values:
        return VISION_FALLBACK_CONFIDENCE

    return clamp_confidence(round(sum(values) / len(values) * 100))


def aggregate_confidence(
    engine: Union[OcrEngine, str],
    values: Union[float, Sequence[Optional[float]], None],
) -> float:
    """
    Aggregate engine-reported confidence into one 0-100 scalar.

    Args:
        engine: OCR engine that produced the values
        values: A single page confidence (Tesseract) or a sequence of
            per-field / per-annotation confidences (Textract, Vision)

    Returns:
        Confidence in [0, 100]
    """
    engine = OcrEngine(engine)

    if engine is OcrEngine.TESSERACT:
        if isinstance(values, (list, tuple)):
            return textract_confidence(values)
        return tesseract_confidence(values)

    if values is None:
        return 0.0

    if engine is OcrEngine.TEXTRACT:
        if isinstance(values, (int, float)):
            return clamp_confidence(values)
        return textract_confidence(values)

    # A single Vision value is one word confidence, not an annotation list
    if isinstance(values, (int, float)):
        return clamp_confidence(round(float(values) * 100))
    return vision_confidence(values)
