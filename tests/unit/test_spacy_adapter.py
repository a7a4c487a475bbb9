from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from scrubber.detection.exceptions import EntityExtractionError
from scrubber.detection.spacy_adapter import SpacyEntityExtractor


def _ent(text: str, label: str) -> SimpleNamespace:
    return SimpleNamespace(text=text, label_=label)


def _make_extractor(ents: list[SimpleNamespace]) -> tuple[SpacyEntityExtractor, MagicMock]:
    nlp = MagicMock(return_value=SimpleNamespace(ents=ents))
    with patch("scrubber.detection.spacy_adapter.spacy.load", return_value=nlp):
        extractor = SpacyEntityExtractor("en_core_web_sm")
    return extractor, nlp


class TestSpacyEntityExtractor:
    def test_loads_configured_model(self) -> None:
        with patch("scrubber.detection.spacy_adapter.spacy.load") as mock_load:
            SpacyEntityExtractor("en_core_web_lg")
        mock_load.assert_called_once_with("en_core_web_lg")

    def test_persons_returns_person_entities_once(self) -> None:
        extractor, _nlp = _make_extractor(
            [_ent("Jane Doe", "PERSON"), _ent("Acme", "ORG"), _ent("Jane Doe", "PERSON")]
        )
        assert extractor.persons("Jane Doe from Acme, Jane Doe again") == ["Jane Doe"]

    def test_organizations_returns_org_entities(self) -> None:
        extractor, _nlp = _make_extractor(
            [_ent("Jane Doe", "PERSON"), _ent("Acme", "ORG"), _ent("Paris", "GPE")]
        )
        assert extractor.organizations("Jane Doe from Acme in Paris") == ["Acme"]

    def test_entity_text_is_stripped(self) -> None:
        extractor, _nlp = _make_extractor([_ent(" Jane ", "PERSON")])
        assert extractor.persons("hi Jane ") == ["Jane"]

    def test_blank_text_skips_the_pipeline(self) -> None:
        extractor, nlp = _make_extractor([])
        assert extractor.persons("   ") == []
        nlp.assert_not_called()

    def test_missing_model_raises(self) -> None:
        with patch(
            "scrubber.detection.spacy_adapter.spacy.load",
            side_effect=OSError("[E050] Can't find model"),
        ):
            with pytest.raises(EntityExtractionError, match="not installed"):
                SpacyEntityExtractor("en_core_web_sm")

    def test_pipeline_failure_is_wrapped(self) -> None:
        extractor, nlp = _make_extractor([])
        nlp.side_effect = ValueError("bad input")
        with pytest.raises(EntityExtractionError, match="bad input"):
            extractor.organizations("Acme")
