import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from rentroll.extraction.example_client_adapter import ExampleClientAdapter
from rentroll.extraction.exceptions import ExtractionError, ExtractionValidationError
from rentroll.extraction.extractor import UnitExtractor


def _make_extractor(client: object, temperature: float = 0.0) -> UnitExtractor:
    return UnitExtractor(client=client, model="test-model", temperature=temperature)  # type: ignore[arg-type]


def _client_returning(content: str) -> MagicMock:
    client = MagicMock()
    client.create_chat_completion.return_value = content
    return client


class TestUnitExtractor:
    def test_extracts_units_from_example_client(self) -> None:
        extractor = _make_extractor(ExampleClientAdapter())

        result = extractor.extract("Lejeliste Vesterbrogade 12")

        assert len(result.units) == 1
        unit = result.units[0]
        assert unit.address == "Vesterbrogade 12"
        assert unit.floor == "0"
        assert unit.door == "tv"
        assert unit.size_sqm == 72
        assert result.property is None

    def test_empty_text_skips_ai_call(self) -> None:
        client = _client_returning("{}")
        extractor = _make_extractor(client)

        result = extractor.extract("   \n ")

        assert result.units == []
        client.create_chat_completion.assert_not_called()

    def test_prompt_contains_text_and_schema(self) -> None:
        client = _client_returning(json.dumps({"units": [], "property": None}))
        extractor = _make_extractor(client)

        extractor.extract("UNIQUE-DOCUMENT-TEXT")

        kwargs = client.create_chat_completion.call_args.kwargs
        assert "UNIQUE-DOCUMENT-TEXT" in kwargs["user_prompt"]
        assert '"unit_address"' in kwargs["user_prompt"]
        assert kwargs["model"] == "test-model"
        assert kwargs["json_schema"]["required"] == ["units", "property"]

    def test_nan_fields_do_not_fail_the_batch(self) -> None:
        content = (
            '{"units": [{"unit_id": "1", "unit_address": "Vej 1", "size_sqm": NaN, '
            '"rent_current": Infinity}, {"unit_id": "2", "size_sqm": 40}], '
            '"property": {"address": "Vej 1", "building_year": NaN}}'
        )
        extractor = _make_extractor(_client_returning(content))

        result = extractor.extract("Rent roll")

        assert [unit.unit_id for unit in result.units] == ["1", "2"]
        assert result.units[0].size_sqm == 0
        assert result.units[0].rent_current == 0
        assert result.units[1].size_sqm == 40
        assert result.property is not None
        assert result.property.building_year is None

    def test_strips_code_fences(self) -> None:
        fenced = '```json\n{"units": [{"unit_id": "7"}], "property": null}\n```'
        extractor = _make_extractor(_client_returning(fenced))

        result = extractor.extract("text")

        assert [unit.unit_id for unit in result.units] == ["7"]

    def test_invalid_json_raises(self) -> None:
        extractor = _make_extractor(_client_returning("not json"))

        with pytest.raises(ExtractionValidationError, match="Invalid JSON"):
            extractor.extract("text")

    def test_non_object_json_raises(self) -> None:
        extractor = _make_extractor(_client_returning("[1, 2]"))

        with pytest.raises(ExtractionValidationError, match="must be an object"):
            extractor.extract("text")

    def test_temperature_is_clamped(self) -> None:
        assert _make_extractor(ExampleClientAdapter(), temperature=0.9).temperature == 0.2
        assert _make_extractor(ExampleClientAdapter(), temperature=-1).temperature == 0.0

    def test_missing_prompt_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ExtractionError, match="prompt template"):
            UnitExtractor(
                client=ExampleClientAdapter(),
                model="m",
                prompt_template_path=tmp_path / "missing.txt",
            )
