"""
Quality scoring for extracted firm profiles.

Confidence (0-100) is the share of checklist fields that are present and
non-empty (arrays: at least one element):

- name, description, specialties, projects,
  project_types, certifications, awards, publications

Quality tier:
- high: confidence >= 80 AND at least one project
- medium: confidence >= 60
- low: otherwise

Missing-data labels and suggestions follow the checklist order, one per
absent field.
"""

import math
from typing import Any, List, Tuple

from .schemas import AnalysisOutcome, DataQuality, ExtractedProfile


# (profile attribute, missing-data label, suggestion)
CHECKLIST: List[Tuple[str, str, str]] = [
    ("name", "Company name",
     "Make the company name prominent on the homepage and in the page title"),
    ("description", "Company description",
     "Add an about page or homepage introduction describing the practice"),
    ("specialties", "Specialties",
     "List the firm's specialties and focus areas"),
    ("projects", "Project portfolio",
     "Add a projects or portfolio section to showcase completed work"),
    ("project_types", "Project types",
     "Group projects by type (residential, commercial, institutional, ...)"),
    ("certifications", "Certifications",
     "Mention professional certifications and memberships"),
    ("awards", "Awards and recognition",
     "Add an awards or recognition page"),
    ("publications", "Publications",
     "Add a press or publications page listing articles and books"),
]

HIGH_CONFIDENCE = 80
MEDIUM_CONFIDENCE = 60

# (profile attribute, label) reported in run metadata, in order
EXTRACTED_FIELD_LABELS: List[Tuple[str, str]] = [
    ("name", "Company Name"),
    ("description", "Description"),
    ("address", "Address"),
    ("phone", "Phone"),
    ("email", "Email"),
    ("projects", "Projects"),
    ("awards", "Awards"),
    ("publications", "Publications"),
]


def is_present(value: Any) -> bool:
    """Present and non-empty; arrays need at least one element."""
    if value is None:
        return False
    if isinstance(value, (str, list)):
        return len(value) > 0
    return True


def calculate_confidence(profile: ExtractedProfile) -> int:
    """Share of checklist fields present, as a whole percentage (half up)."""
    present = sum(1 for attr, _, _ in CHECKLIST if is_present(getattr(profile, attr)))
    return int(math.floor(100 * present / len(CHECKLIST) + 0.5))


def determine_data_quality(confidence: int, profile: ExtractedProfile) -> DataQuality:
    if confidence >= HIGH_CONFIDENCE and profile.projects:
        return "high"
    if confidence >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def identify_missing_data(profile: ExtractedProfile) -> List[str]:
    return [label for attr, label, _ in CHECKLIST if not is_present(getattr(profile, attr))]


def generate_suggestions(missing_data: List[str]) -> List[str]:
    suggestions_by_label = {label: suggestion for _, label, suggestion in CHECKLIST}
    return [suggestions_by_label[label] for label in missing_data if label in suggestions_by_label]


def get_data_extracted_fields(profile: ExtractedProfile) -> List[str]:
    """Human-readable names of the headline fields that were extracted."""
    return [label for attr, label in EXTRACTED_FIELD_LABELS if is_present(getattr(profile, attr))]


def score_profile(profile: ExtractedProfile) -> AnalysisOutcome:
    """
    Score a cleaned profile.

    Args:
        profile: The cleaned, partial profile.

    Returns:
        AnalysisOutcome with confidence, tier, missing fields and suggestions.
    """
    confidence = calculate_confidence(profile)
    missing = identify_missing_data(profile)
    return AnalysisOutcome(
        extracted_data=profile,
        confidence=confidence,
        data_quality=determine_data_quality(confidence, profile),
        missing_fields=missing,
        suggestions=generate_suggestions(missing),
    )
