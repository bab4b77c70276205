"""메타데이터 추출 파이프라인 (분류기, 프로바이더, 라우터)"""

from xraider.extract.classifier import classify, classify_filename
from xraider.extract.router import detect_provider, extract_from_file, extract_from_locator

__all__ = [
    "classify",
    "classify_filename",
    "detect_provider",
    "extract_from_file",
    "extract_from_locator",
]
