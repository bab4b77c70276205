"""
키워드 기반 주제 분류기

카테고리 순서가 고정되어 있으므로 여러 카테고리에 걸치는 텍스트도 항상 같은 결과를 냅니다.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from xraider.core.models import Category

# 순서 = 우선순위
CATEGORY_KEYWORDS: Tuple[Tuple[Category, Tuple[str, ...]], ...] = (
    (Category.COMPUTER_SCIENCE, (
        "computer", "algorithm", "machine learning", "artificial intelligence",
        "programming", "software", "neural network", "deep learning",
    )),
    (Category.PHYSICS, (
        "physics", "quantum", "relativity", "particle", "mechanics",
        "thermodynamics", "electromagnetic",
    )),
    (Category.MEDICAL_SCIENCE, (
        "medical", "medicine", "health", "clinical", "patient",
        "treatment", "disease", "therapeutic",
    )),
    (Category.ENVIRONMENTAL_SCIENCE, (
        "environment", "climate", "ecology", "sustainability", "carbon",
        "ecosystem", "conservation",
    )),
)

# Drive 파일명 전용 (짧은 어간 매칭)
FILENAME_KEYWORDS: Tuple[Tuple[Category, Tuple[str, ...]], ...] = (
    (Category.COMPUTER_SCIENCE, ("computer", "program", "algorithm", "code", "data")),
    (Category.PHYSICS, ("physics", "quantum")),
    (Category.MEDICAL_SCIENCE, ("medical", "health", "clinic", "bio")),
    (Category.ENVIRONMENTAL_SCIENCE, ("climate", "environment", "eco")),
)


def _match(text: Optional[str], table: Sequence[Tuple[Category, Sequence[str]]]) -> Category:
    lowered = (text or "").lower()
    for category, keywords in table:
        if any(keyword in lowered for keyword in keywords):
            return category
    return Category.GENERAL


def classify(text: Optional[str]) -> Category:
    """자유 텍스트 → 카테고리. 매칭 없으면 General"""
    return _match(text, CATEGORY_KEYWORDS)


def classify_filename(name: Optional[str]) -> Category:
    """Drive 파일명 → 카테고리"""
    return _match(name, FILENAME_KEYWORDS)
