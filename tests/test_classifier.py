"""분류기 테스트"""

from __future__ import annotations

import pytest

from xraider.core.models import Category
from xraider.extract.classifier import classify, classify_filename


class TestClassify:
    @pytest.mark.parametrize("text, expected", [
        ("Deep Learning for Vision", Category.COMPUTER_SCIENCE),
        ("Quantum entanglement in cold atoms", Category.PHYSICS),
        ("A clinical trial of a new treatment", Category.MEDICAL_SCIENCE),
        ("Carbon budgets and climate policy", Category.ENVIRONMENTAL_SCIENCE),
        ("Medieval poetry", Category.GENERAL),
    ])
    def test_keywords(self, text, expected):
        assert classify(text) == expected

    def test_case_insensitive(self):
        assert classify("NEURAL NETWORK PRUNING") == Category.COMPUTER_SCIENCE

    def test_fixed_priority_order(self):
        # CS가 Medical보다 먼저 검사됨
        assert classify("machine learning for patient triage") == Category.COMPUTER_SCIENCE
        # Physics가 Environmental보다 먼저 검사됨
        assert classify("thermodynamics of climate") == Category.PHYSICS

    def test_empty_and_none(self):
        assert classify("") == Category.GENERAL
        assert classify(None) == Category.GENERAL


class TestClassifyFilename:
    def test_short_stems(self):
        assert classify_filename("source_code_notes.pdf") == Category.COMPUTER_SCIENCE
        assert classify_filename("biostatistics.docx") == Category.MEDICAL_SCIENCE
        assert classify_filename("eco-report.pdf") == Category.ENVIRONMENTAL_SCIENCE
        assert classify_filename("quantum.pdf") == Category.PHYSICS

    def test_no_match(self):
        assert classify_filename("holiday-photos.zip") == Category.GENERAL
