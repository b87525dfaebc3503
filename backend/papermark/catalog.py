"""
Cambridge AS & A Level reference data.

Each subject has a syllabus code (e.g. 9709 for Mathematics) and a set of
components. A component number such as "12" means Paper 1, variant 2, and
maps onto one of the internal paper types used for grading.
"""

import re
from typing import Dict, List, Optional, Tuple


CAMBRIDGE_SUBJECTS: List[Dict] = [
    {
        "syllabus_code": "9709",
        "label": "Mathematics",
        "value": "math",
        "components": [
            {"component": "11", "label": "Pure Mathematics 1 (Variant 1)", "paper_type": "paper1"},
            {"component": "12", "label": "Pure Mathematics 1 (Variant 2)", "paper_type": "paper1"},
            {"component": "13", "label": "Pure Mathematics 1 (Variant 3)", "paper_type": "paper1"},
            {"component": "21", "label": "Pure Mathematics 2 (Variant 1)", "paper_type": "paper2"},
            {"component": "22", "label": "Pure Mathematics 2 (Variant 2)", "paper_type": "paper2"},
            {"component": "23", "label": "Pure Mathematics 2 (Variant 3)", "paper_type": "paper2"},
            {"component": "31", "label": "Pure Mathematics 3 (Variant 1)", "paper_type": "paper3"},
            {"component": "32", "label": "Pure Mathematics 3 (Variant 2)", "paper_type": "paper3"},
            {"component": "33", "label": "Pure Mathematics 3 (Variant 3)", "paper_type": "paper3"},
            {"component": "41", "label": "Mechanics (Variant 1)", "paper_type": "paper4"},
            {"component": "42", "label": "Mechanics (Variant 2)", "paper_type": "paper4"},
            {"component": "43", "label": "Mechanics (Variant 3)", "paper_type": "paper4"},
            {"component": "51", "label": "Probability & Statistics 1 (Variant 1)", "paper_type": "paper5"},
            {"component": "52", "label": "Probability & Statistics 1 (Variant 2)", "paper_type": "paper5"},
            {"component": "53", "label": "Probability & Statistics 1 (Variant 3)", "paper_type": "paper5"},
            {"component": "61", "label": "Probability & Statistics 2 (Variant 1)", "paper_type": "paper6"},
            {"component": "62", "label": "Probability & Statistics 2 (Variant 2)", "paper_type": "paper6"},
            {"component": "63", "label": "Probability & Statistics 2 (Variant 3)", "paper_type": "paper6"},
        ],
    },
    {
        "syllabus_code": "9702",
        "label": "Physics",
        "value": "physics",
        "components": [
            {"component": "11", "label": "Multiple Choice (AS) (Variant 1)", "paper_type": "mcq"},
            {"component": "12", "label": "Multiple Choice (AS) (Variant 2)", "paper_type": "mcq"},
            {"component": "13", "label": "Multiple Choice (AS) (Variant 3)", "paper_type": "mcq"},
            {"component": "21", "label": "AS Structured Questions (Variant 1)", "paper_type": "paper2"},
            {"component": "22", "label": "AS Structured Questions (Variant 2)", "paper_type": "paper2"},
            {"component": "23", "label": "AS Structured Questions (Variant 3)", "paper_type": "paper2"},
            {"component": "31", "label": "Advanced Practical Skills (Variant 1)", "paper_type": "paper3"},
            {"component": "32", "label": "Advanced Practical Skills (Variant 2)", "paper_type": "paper3"},
            {"component": "41", "label": "A Level Structured Questions (Variant 1)", "paper_type": "paper4"},
            {"component": "42", "label": "A Level Structured Questions (Variant 2)", "paper_type": "paper4"},
            {"component": "43", "label": "A Level Structured Questions (Variant 3)", "paper_type": "paper4"},
            {"component": "51", "label": "Planning, Analysis and Evaluation (Variant 1)", "paper_type": "paper5"},
            {"component": "52", "label": "Planning, Analysis and Evaluation (Variant 2)", "paper_type": "paper5"},
        ],
    },
    {
        "syllabus_code": "9701",
        "label": "Chemistry",
        "value": "chemistry",
        "components": [
            {"component": "11", "label": "Multiple Choice (AS) (Variant 1)", "paper_type": "mcq"},
            {"component": "12", "label": "Multiple Choice (AS) (Variant 2)", "paper_type": "mcq"},
            {"component": "13", "label": "Multiple Choice (AS) (Variant 3)", "paper_type": "mcq"},
            {"component": "21", "label": "AS Structured Questions (Variant 1)", "paper_type": "paper2"},
            {"component": "22", "label": "AS Structured Questions (Variant 2)", "paper_type": "paper2"},
            {"component": "23", "label": "AS Structured Questions (Variant 3)", "paper_type": "paper2"},
            {"component": "31", "label": "Advanced Practical Skills (Variant 1)", "paper_type": "paper3"},
            {"component": "32", "label": "Advanced Practical Skills (Variant 2)", "paper_type": "paper3"},
            {"component": "41", "label": "A Level Structured Questions (Variant 1)", "paper_type": "paper4"},
            {"component": "42", "label": "A Level Structured Questions (Variant 2)", "paper_type": "paper4"},
            {"component": "43", "label": "A Level Structured Questions (Variant 3)", "paper_type": "paper4"},
            {"component": "51", "label": "Planning, Analysis and Evaluation (Variant 1)", "paper_type": "paper5"},
            {"component": "52", "label": "Planning, Analysis and Evaluation (Variant 2)", "paper_type": "paper5"},
        ],
    },
]

PAPER_TYPES: List[Dict[str, str]] = [
    {"value": "paper1", "label": "Paper 1"},
    {"value": "paper2", "label": "Paper 2"},
    {"value": "paper3", "label": "Paper 3"},
    {"value": "paper4", "label": "Paper 4"},
    {"value": "paper5", "label": "Paper 5"},
    {"value": "paper6", "label": "Paper 6"},
    {"value": "mcq", "label": "MCQ"},
]

EXAM_SESSIONS = ("February/March", "May/June", "October/November")

# Valid subject-paper combinations
SUBJECT_PAPER_MAP: Dict[str, List[str]] = {
    "math": ["paper1", "paper2", "paper3", "paper4", "paper5", "paper6"],
    "physics": ["mcq", "paper2", "paper3", "paper4", "paper5"],
    "chemistry": ["mcq", "paper2", "paper3", "paper4", "paper5"],
}

PAPER_CODE_PATTERN = re.compile(r"^(\d{4})/(\d{2})$")


def valid_paper_types(subject: str) -> List[str]:
    """Paper types allowed for a subject; empty for an unknown subject."""
    return SUBJECT_PAPER_MAP.get(subject, [])


def is_valid_combination(subject: str, paper_type: str) -> bool:
    return paper_type in valid_paper_types(subject)


def build_paper_code(syllabus_code: str, component: str) -> str:
    """Build a full paper code string, e.g. "9709/12"."""
    return f"{syllabus_code}/{component}"


def parse_paper_code(code: str) -> Optional[Tuple[str, str]]:
    """Split "9709/12" into ("9709", "12"). None if it is not a paper code."""
    match = PAPER_CODE_PATTERN.match(code or "")
    if not match:
        return None
    return match.group(1), match.group(2)


def subject_by_syllabus_code(syllabus_code: str) -> Optional[Dict]:
    for subject in CAMBRIDGE_SUBJECTS:
        if subject["syllabus_code"] == syllabus_code:
            return subject
    return None


def component_info(syllabus_code: str, component: str) -> Optional[Dict]:
    subject = subject_by_syllabus_code(syllabus_code)
    if not subject:
        return None
    for comp in subject["components"]:
        if comp["component"] == component:
            return comp
    return None


def subject_label(value: str) -> str:
    for subject in CAMBRIDGE_SUBJECTS:
        if subject["value"] == value:
            return subject["label"]
    return value


def paper_type_label(value: str) -> str:
    for paper in PAPER_TYPES:
        if paper["value"] == value:
            return paper["label"]
    return value


def format_paper_code_label(paper_code: str) -> str:
    """
    Format a paper code with its component label for display.

    "9709/12" -> "9709/12 - Pure Mathematics 1 (Variant 2)". Unknown codes
    are returned unchanged.
    """
    parsed = parse_paper_code(paper_code)
    if not parsed:
        return paper_code
    comp = component_info(*parsed)
    if not comp:
        return paper_code
    return f"{paper_code} - {comp['label']}"
