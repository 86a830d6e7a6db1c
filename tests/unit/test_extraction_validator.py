from datetime import date

import pytest

from rentroll.extraction.exceptions import ExtractionValidationError
from rentroll.extraction.validator import validate_and_build


class TestValidateAndBuild:
    def test_builds_units_and_property(self) -> None:
        result = validate_and_build(
            {
                "units": [{"unit_id": "1", "unit_address": "Vej 1"}],
                "property": {"address": "Vej 1", "zipcode": "8000"},
            }
        )

        assert len(result.units) == 1
        assert result.property is not None
        assert result.property.zipcode == "8000"
        assert result.dropped_count == 0

    def test_null_units_is_empty(self) -> None:
        result = validate_and_build({"units": None, "property": None})

        assert result.units == []
        assert result.property is None

    def test_counts_dropped_rows(self) -> None:
        result = validate_and_build({"units": [{"size_sqm": 40}, {"unit_id": "2"}]})

        assert len(result.units) == 1
        assert result.dropped_count == 1

    def test_passes_today_to_date_parsing(self) -> None:
        today = date(2024, 1, 15)
        result = validate_and_build({"units": [{"unit_id": "1", "lease_start": "??"}]}, today)

        assert result.units[0].lease_start == today
        assert result.units[0].dates_defaulted

    def test_missing_units_raises(self) -> None:
        with pytest.raises(ExtractionValidationError, match="units"):
            validate_and_build({"property": None})

    def test_units_not_a_list_raises(self) -> None:
        with pytest.raises(ExtractionValidationError, match="must be a list"):
            validate_and_build({"units": {"unit_id": "1"}})

    def test_property_not_an_object_raises(self) -> None:
        with pytest.raises(ExtractionValidationError, match="property"):
            validate_and_build({"units": [], "property": "Vej 1"})
