"""Tests for page extraction and confidence scoring."""

import pytest
from pydantic import ValidationError

from unpack.features.extraction.ocr import (
    PAGE_SEPARATOR,
    ExtractionResult,
    PageImage,
    VisionExtractor,
    combine_extractions,
    page_confidence,
)
from unpack.services.openai_client import ModelUnavailable
from unpack.shared.errors import ExtractionFailure
from tests.fixtures.fakes import FakeChatModel


class TestPageConfidence:
    def test_clean_page_scores_one(self):
        assert page_confidence("Today I walked to the river and sat for a while.") == 1.0

    def test_two_unclear_in_ten_words(self):
        text = "I went [unclear] the store and [unclear] some milk today"
        assert page_confidence(text) == pytest.approx(0.6)

    def test_floor_when_mostly_unclear(self):
        assert page_confidence("[unclear] [unclear] [unclear] word") == pytest.approx(0.3)

    def test_no_words_scores_zero(self):
        """An empty page is not read as a perfect one."""
        assert page_confidence("") == 0.0
        assert page_confidence("   \n  ") == 0.0

    def test_never_above_one(self):
        assert 0.0 <= page_confidence("a b c d e f") <= 1.0


class TestCombineExtractions:
    def test_joins_in_page_order_with_separator(self):
        text, confidence = combine_extractions([
            ExtractionResult(text="first page", confidence=0.9),
            ExtractionResult(text="second page", confidence=0.5),
        ])
        assert text == f"first page{PAGE_SEPARATOR}second page"
        assert confidence == pytest.approx(0.7)

    def test_empty_page_counts_in_mean_but_not_text(self):
        text, confidence = combine_extractions([
            ExtractionResult(text="only words", confidence=1.0),
            ExtractionResult(text="", confidence=0.0),
        ])
        assert text == "only words"
        assert confidence == pytest.approx(0.5)

    def test_no_pages(self):
        assert combine_extractions([]) == ("", 0.0)


class TestPageImage:
    def test_requires_exactly_one_source(self):
        with pytest.raises(ValidationError):
            PageImage()
        with pytest.raises(ValidationError):
            PageImage(image_base64="abc", image_url="https://example.com/p.jpg")

    def test_base64_becomes_data_url(self):
        assert PageImage(image_base64="QUJD").as_url() == "data:image/jpeg;base64,QUJD"

    def test_url_passes_through(self):
        assert PageImage(image_url="https://example.com/p.jpg").as_url() == "https://example.com/p.jpg"


class TestVisionExtractor:
    @pytest.mark.asyncio
    async def test_returns_text_and_confidence(self):
        model = FakeChatModel(["Dear diary, [unclear] was a long day"])
        extractor = VisionExtractor(model=model)

        result = await extractor.extract(PageImage(image_base64="QUJD"))

        assert result.text == "Dear diary, [unclear] was a long day"
        assert result.confidence == pytest.approx(1 - 2 / 7)
        content = model.calls[0]["messages"][0]["content"]
        assert content[1]["image_url"]["url"] == "data:image/jpeg;base64,QUJD"
        assert "[unclear]" in content[0]["text"]

    @pytest.mark.asyncio
    async def test_unreachable_model_raises(self):
        extractor = VisionExtractor(model=FakeChatModel([ModelUnavailable("timed out")]))

        with pytest.raises(ExtractionFailure) as exc_info:
            await extractor.extract(PageImage(image_url="https://example.com/p.jpg"), page_index=3)

        assert exc_info.value.retryable
        assert exc_info.value.details["page_index"] == 3

    @pytest.mark.asyncio
    async def test_blank_output_is_a_failure_not_a_result(self):
        extractor = VisionExtractor(model=FakeChatModel(["   "]))

        with pytest.raises(ExtractionFailure):
            await extractor.extract(PageImage(image_base64="QUJD"))
