import sys
from typing import Dict, List, Protocol, Type

import numpy as np
from PIL import Image

from TextSnip.errors import OcrError
from TextSnip.ocr.ocr_format_converter import convert_ocr_result_to_observations
from TextSnip.ocr.reading_order import TextObservation
from TextSnip.util.logging_config import logger

try:
    from rapidocr_onnxruntime import RapidOCR as ROCR
except ImportError:
    pass

try:
    import pytesseract
except ImportError:
    pass

TESSERACT_LANGUAGES = {
    'en': 'eng',
    'ja': 'jpn',
    'de': 'deu',
    'fr': 'fra',
    'es': 'spa',
    'it': 'ita',
    'pt': 'por',
    'ru': 'rus',
    'ko': 'kor',
    'zh-Hans': 'chi_sim',
    'zh-Hant': 'chi_tra',
}


class OcrEngine(Protocol):
    name: str
    available: bool

    def recognize(self, img: Image.Image, language: str) -> List[TextObservation]:
        """Return the text fragments found in `img`, in whatever order the engine produces."""
        ...


def pil_image_to_numpy_array(img: Image.Image) -> np.ndarray:
    return np.array(img.convert('RGB'))


def tesseract_language(language: str) -> str:
    """Map a BCP-47 tag such as ``en-US`` or ``zh-Hans-CN`` to a tesseract code."""
    parts = language.split('-')
    if len(parts) > 1 and '-'.join(parts[:2]) in TESSERACT_LANGUAGES:
        return TESSERACT_LANGUAGES['-'.join(parts[:2])]
    return TESSERACT_LANGUAGES.get(parts[0].lower(), 'eng')


class RapidOcrEngine:
    name = 'rapidocr'
    readable_name = 'RapidOCR'
    available = False

    def __init__(self):
        if 'rapidocr_onnxruntime' not in sys.modules:
            logger.warning('rapidocr_onnxruntime not available, RapidOCR will not work!')
            return
        logger.info('Loading RapidOCR model')
        self.model = ROCR()
        self.available = True
        logger.info('RapidOCR ready')

    def recognize(self, img: Image.Image, language: str) -> List[TextObservation]:
        if not self.available:
            raise OcrError('RapidOCR is not available')
        # RapidOCR picks its script from the loaded model; the language hint is unused
        read_results, _elapsed = self.model(pil_image_to_numpy_array(img))
        return convert_ocr_result_to_observations(read_results, img.width, img.height, self.name)


class TesseractEngine:
    name = 'tesseract'
    readable_name = 'Tesseract'
    available = False

    def __init__(self):
        if 'pytesseract' not in sys.modules:
            logger.warning('pytesseract not available, Tesseract will not work!')
            return
        self.available = True
        logger.info('Tesseract ready')

    def recognize(self, img: Image.Image, language: str) -> List[TextObservation]:
        if not self.available:
            raise OcrError('Tesseract is not available')
        try:
            data = pytesseract.image_to_data(
                img.convert('RGB'),
                lang=tesseract_language(language),
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractNotFoundError as e:
            raise OcrError('tesseract executable not found on PATH') from e
        except pytesseract.TesseractError as e:
            raise OcrError(f'Tesseract failed: {e}') from e
        return convert_ocr_result_to_observations(data, img.width, img.height, self.name)


ENGINES: Dict[str, Type] = {
    RapidOcrEngine.name: RapidOcrEngine,
    TesseractEngine.name: TesseractEngine,
}

_engine_cache: Dict[str, OcrEngine] = {}


def get_engine(name: str) -> OcrEngine:
    """Return the shared engine instance for `name`, loading it on first use."""
    if name not in ENGINES:
        raise OcrError(f"Unknown OCR engine '{name}', expected one of {sorted(ENGINES)}")
    if name not in _engine_cache:
        _engine_cache[name] = ENGINES[name]()
    engine = _engine_cache[name]
    if not engine.available:
        raise OcrError(f"OCR engine '{name}' is not installed")
    return engine
