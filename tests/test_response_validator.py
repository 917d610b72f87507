"""Tests for the response_validator and quality_scoring modules."""

import json

import pytest

from firm_profiler.errors import ParseError
from firm_profiler.quality_scoring import (
    calculate_confidence,
    determine_data_quality,
    get_data_extracted_fields,
    identify_missing_data,
)
from firm_profiler.response_validator import (
    clean_extracted_data,
    locate_json_object,
    validate,
)
from firm_profiler.schemas import ExtractedProfile


class TestLocateJsonObject:
    """Test JSON recovery from free-form text."""

    def test_bare_object(self):
        assert locate_json_object('{"name": "Smith"}') == {"name": "Smith"}

    def test_object_inside_prose(self):
        text = 'Here is the data:\n```json\n{"name": "Smith"}\n```\nHope this helps!'
        assert locate_json_object(text) == {"name": "Smith"}

    def test_trailing_braces_after_object(self):
        text = 'Result: {"name": "Smith", "projects": []} and a note {see above}'
        assert locate_json_object(text) == {"name": "Smith", "projects": []}

    @pytest.mark.parametrize("text", ["", "   ", "No JSON here", "[1, 2, 3]", "{not json}"])
    def test_no_object_raises(self, text):
        with pytest.raises(ParseError):
            locate_json_object(text)

    def test_parse_error_keeps_raw_text(self):
        with pytest.raises(ParseError) as exc_info:
            validate("I could not find any information.")
        assert exc_info.value.raw_text == "I could not find any information."


class TestCleaning:
    """Test lenient field-by-field cleaning."""

    def test_strings_trimmed_and_blank_dropped(self):
        profile = clean_extracted_data({"name": "  Smith  ", "description": "   ", "phone": 123})

        assert profile.name == "Smith"
        assert profile.description is None
        assert profile.phone is None

    def test_numbers_must_be_numbers(self):
        profile = clean_extracted_data({"foundedYear": "1998"})
        assert profile.founded_year is None

        profile = clean_extracted_data({"foundedYear": True})
        assert profile.founded_year is None

        profile = clean_extracted_data({"foundedYear": 1998})
        assert profile.founded_year == 1998

    def test_string_arrays_filtered(self):
        profile = clean_extracted_data({"specialties": ["Residential", 3, "  ", None, " Civic "]})
        assert profile.specialties == ["Residential", "Civic"]

    def test_non_array_dropped(self):
        profile = clean_extracted_data({"specialties": "Residential"})
        assert profile.specialties is None

    def test_empty_array_kept(self):
        profile = clean_extracted_data({"awards": []})
        assert profile.awards == []

    def test_project_without_name_dropped(self):
        data = {
            "projects": [
                {"size": "large"},
                {"name": "Villa A", "year": "2019", "status": "Completed", "materials": ["CLT", 7]},
                "Library B",
                {"name": "   "},
            ]
        }

        profile = clean_extracted_data(data)

        assert len(profile.projects) == 1
        project = profile.projects[0]
        assert project.name == "Villa A"
        assert project.year is None
        assert project.status == "completed"
        assert project.materials == ["CLT"]

    def test_enumerations(self):
        data = {
            "projects": [{"name": "A", "status": "abandoned"}],
            "publications": [{"title": "Timber", "type": "Book"}, {"title": "Blog", "type": "blog"}],
            "exhibitions": [{"name": "Biennale", "type": "group"}],
        }

        profile = clean_extracted_data(data)

        assert profile.projects[0].status is None
        assert profile.publications[0].type == "book"
        assert profile.publications[1].type is None
        assert profile.exhibitions[0].type == "group"

    def test_entities_need_identifying_field(self):
        data = {
            "awards": [{"year": 2020}, {"name": "RIBA Award", "year": 2021}],
            "publications": [{"publisher": "Phaidon"}, {"title": "Timber"}],
            "press": [{"source": "Dezeen"}, {"title": "Profile", "source": "Dezeen"}],
        }

        profile = clean_extracted_data(data)

        assert [a.name for a in profile.awards] == ["RIBA Award"]
        assert [p.title for p in profile.publications] == ["Timber"]
        assert [p.title for p in profile.press] == ["Profile"]

    def test_unknown_keys_dropped(self):
        profile = clean_extracted_data({"name": "Smith", "ceoSalary": "secret"})
        assert profile.model_dump(exclude_none=True) == {"name": "Smith"}


class TestValidate:
    """Test end-to-end validation and scoring."""

    def test_complete_profile_is_high_quality(self, full_profile_data):
        outcome = validate(json.dumps(full_profile_data))

        assert outcome.confidence == 100
        assert outcome.data_quality == "high"
        assert outcome.missing_fields == []
        assert outcome.suggestions == []
        assert outcome.extracted_data.name == "Smith Architects"
        assert len(outcome.extracted_data.projects) == 2

    def test_revalidation_is_stable(self, full_profile_data):
        full_profile_data["specialties"].append("  ")
        full_profile_data["projects"].append({"size": "small"})
        outcome = validate(json.dumps(full_profile_data))

        cleaned_json = outcome.extracted_data.model_dump_json(by_alias=True, exclude_none=True)
        again = validate(cleaned_json)

        assert again == outcome

    def test_empty_object_is_low_quality(self):
        outcome = validate("{}")

        assert outcome.confidence == 0
        assert outcome.data_quality == "low"
        assert len(outcome.missing_fields) == 8
        assert len(outcome.suggestions) == 8


class TestScoring:
    """Test confidence and tier rules."""

    def test_rounds_half_up(self):
        # 3 of 8 = 37.5
        profile = ExtractedProfile(name="A", description="B", specialties=["C"])
        assert calculate_confidence(profile) == 38

    def test_empty_arrays_do_not_count(self):
        profile = ExtractedProfile(name="A", specialties=[], projects=[])
        assert calculate_confidence(profile) == 13

    def test_high_requires_a_project(self):
        profile = ExtractedProfile(
            name="A", description="B", specialties=["C"], project_types=["D"],
            certifications=["E"], awards=[{"name": "F"}], publications=[{"title": "G"}],
        )
        confidence = calculate_confidence(profile)

        assert confidence == 88
        assert determine_data_quality(confidence, profile) == "medium"

    def test_medium_threshold(self):
        # 5 of 8 = 62.5
        profile = ExtractedProfile(
            name="A", description="B", specialties=["C"], projects=[{"name": "P"}],
            awards=[{"name": "F"}],
        )
        confidence = calculate_confidence(profile)

        assert confidence == 63
        assert determine_data_quality(confidence, profile) == "medium"

    def test_missing_fields_in_checklist_order(self):
        profile = ExtractedProfile(name="A", specialties=["C"], certifications=["E"])

        assert identify_missing_data(profile) == [
            "Company description",
            "Project portfolio",
            "Project types",
            "Awards and recognition",
            "Publications",
        ]

    def test_data_extracted_labels(self):
        profile = ExtractedProfile(name="A", email="a@b.c", projects=[{"name": "P"}], awards=[])
        assert get_data_extracted_fields(profile) == ["Company Name", "Email", "Projects"]
