"""Roster column names, lookup tables and fixed defaults."""

from __future__ import annotations

from typing import Dict, List, Tuple

DELIMITER = ";"
QUOTE = '"'

EMPTY_PLACEHOLDER = "(Empty)"

SURNAME_COLUMN = "Фамилия"
GIVEN_NAME_COLUMN = "Имя"
PATRONYMIC_COLUMN = "Отчество"
FULL_NAME_COLUMN = "ФИО"
POSITION_COLUMN = "Должность"
RANK_COLUMN = "Воинское звание"
PERSONAL_NUMBER_COLUMN = "Личный номер"
AGE_COLUMN = "Возраст"
CALLSIGN_COLUMN = "Позывной"
REGION_COLUMN = "Регион проживания"
STATUS_COLUMN = "Расход"
CATEGORY_COLUMN = "ШДК категория в/сл."
UNIT_COLUMN = "ШДК подразделение"
SEQUENCE_COLUMN = "№ п/п"

ALLOWED_FILTER_COLUMNS: List[str] = [
    REGION_COLUMN,
    STATUS_COLUMN,
    CATEGORY_COLUMN,
    UNIT_COLUMN,
]

SEARCH_COLUMNS: List[str] = [
    POSITION_COLUMN,
    SURNAME_COLUMN,
    PERSONAL_NUMBER_COLUMN,
    REGION_COLUMN,
    CALLSIGN_COLUMN,
]

VACANT_MARKER = "вакант"

PHOTO_EXTENSION = ".jpg"
VACANT_PHOTO_NAME = "Вакант.jpg"
NO_PHOTO_NAME = "nophoto.jpg"
NO_PHOTO_TEXT = "No Photo"
PLACEHOLDER_SIZE: Tuple[int, int] = (400, 500)

# (name, start, end), 1-indexed and inclusive. Overlaps are intentional.
DEFAULT_BAND_TABLE: List[Tuple[str, int, int]] = [
    ("Управление роты", 1, 6),
    ("1 штурмовой взвод", 7, 25),
    ("2 штурмовой взвод", 26, 44),
    ("3 штурмовой взвод", 45, 63),
    ("4 штурмовой взвод", 64, 82),
    ("5 штурмовой взвод", 83, 101),
    ("взвод огневой поддержки", 102, 129),
    ("разведывательное отделение", 130, 135),
    ("огнеметное отделение", 136, 140),
    ("взвод БПЛА", 141, 152),
    ("отделение сбора и эвакуации раненных", 152, 157),
]

# Bucket name -> accepted status literals (compared lower-cased and trimmed).
STATUS_VOCABULARY: Dict[str, List[str]] = {
    "present": ["налицо"],
    "vacation": ["отпуск"],
    "recovery": ["реабилитация", "выздоровление"],
    "hospital": ["госпиталь", "болен"],
    "soch": ["соч"],
}

CATEGORY_TAGS: Dict[str, str] = {
    "офицер": "officer",
    "прапорщик": "praporshchik",
    "сержант": "sergeant",
}
COMMAND_CATEGORIES: List[str] = ["офицер", "сержант"]

STATUS_TAGS: Dict[str, str] = {
    "налицо": "present",
    "отпуск": "vacation",
    "болен": "sick",
    "госпиталь": "sick",
    "соч": "soch",
}

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_SAMPLE_ROWS = 30
ANALYSIS_FALLBACK_MESSAGE = "Error analyzing data. Please try again."
QUESTION_FALLBACK_MESSAGE = "Sorry, I encountered an error processing your request."

SNAPSHOT_FILENAME = "snapshot.zip"
RESTORED_FILE_NAME = "Restored File"
