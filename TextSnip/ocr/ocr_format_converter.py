"""
OCR Format Converter Utility

Converts the output of the supported OCR engines into `TextObservation`s:
normalized (0-1) boxes with a bottom-left origin, relative to the captured
bitmap. Engines report pixel boxes with a top-left origin, so the vertical flip
for observations happens here and nowhere else.
"""

from typing import Any, Dict, List, Sequence

from TextSnip.errors import OcrError
from TextSnip.ocr.reading_order import TextObservation
from TextSnip.util.logging_config import logger


def pixel_box_to_observation(
    text: str,
    left: float,
    top: float,
    right: float,
    bottom: float,
    img_width: int,
    img_height: int,
) -> TextObservation:
    """Build an observation from a top-left-origin pixel box."""
    left, right = sorted((left, right))
    top, bottom = sorted((top, bottom))
    return TextObservation.from_bounds(
        text,
        min_x=left / img_width,
        min_y=1.0 - bottom / img_height,
        max_x=right / img_width,
        max_y=1.0 - top / img_height,
    )


def quad_to_observation(text: str, quad: Sequence[Sequence[float]], img_width: int, img_height: int) -> TextObservation:
    """Build an observation from four (x, y) pixel corners, using their bounding box."""
    xs = [float(p[0]) for p in quad]
    ys = [float(p[1]) for p in quad]
    return pixel_box_to_observation(text, min(xs), min(ys), max(xs), max(ys), img_width, img_height)


def convert_ocr_result_to_observations(
    ocr_result: Any,
    img_width: int,
    img_height: int,
    engine_name: str = "unknown",
) -> List[TextObservation]:
    """
    Converts OCR results from the supported engines to observations.

    Recognized shapes:
        - RapidOCR: list of ``[quad, text, score]``
        - pytesseract ``image_to_data`` dict output

    Fragments with blank text are dropped. An empty result gives an empty list.

    Raises:
        OcrError: the result has a shape none of the converters understand.
    """
    if not ocr_result:
        logger.debug(f"convert_ocr_result_to_observations: {engine_name} result is empty")
        return []

    if isinstance(ocr_result, dict):
        if {'text', 'left', 'top', 'width', 'height'} <= ocr_result.keys():
            return extract_from_tesseract_data(ocr_result, img_width, img_height)

    elif isinstance(ocr_result, (list, tuple)):
        first = ocr_result[0]
        if isinstance(first, (list, tuple)) and len(first) >= 2 and isinstance(first[1], str):
            return extract_from_rapidocr_result(ocr_result, img_width, img_height)

    logger.warning(f"convert_ocr_result_to_observations: {engine_name} - Unrecognized format: {type(ocr_result)}")
    raise OcrError(f"Unrecognized {engine_name} result format: {type(ocr_result).__name__}")


def extract_from_rapidocr_result(read_results: Sequence[Sequence[Any]], img_width: int, img_height: int) -> List[TextObservation]:
    observations = []
    for read_result in read_results:
        quad, text = read_result[0], read_result[1]
        if not text or not text.strip():
            continue
        observations.append(quad_to_observation(text.strip(), quad, img_width, img_height))
    logger.debug(f"extract_from_rapidocr_result: Extracted {len(observations)} fragments")
    return observations


def extract_from_tesseract_data(data: Dict[str, List[Any]], img_width: int, img_height: int) -> List[TextObservation]:
    observations = []
    for i, raw_text in enumerate(data.get('text', [])):
        text = str(raw_text or '').strip()
        if not text:
            continue
        left = float(data['left'][i])
        top = float(data['top'][i])
        observations.append(pixel_box_to_observation(
            text,
            left,
            top,
            left + float(data['width'][i]),
            top + float(data['height'][i]),
            img_width,
            img_height,
        ))
    logger.debug(f"extract_from_tesseract_data: Extracted {len(observations)} words")
    return observations
