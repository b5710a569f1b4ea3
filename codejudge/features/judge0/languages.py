from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class Language(str, Enum):
    cpp = "cpp"
    c = "c"
    java = "java"
    python = "python"
    javascript = "javascript"
    typescript = "typescript"


# Judge0 CE language ids used by the platform
LANGUAGE_IDS: Dict[Language, int] = {
    Language.cpp: 54,
    Language.python: 109,
    Language.java: 91,
    Language.javascript: 102,
    Language.c: 110,
    Language.typescript: 101,
}


def parse_language(value: Optional[str]) -> Optional[Language]:
    if not value:
        return None
    try:
        return Language(value.strip().lower())
    except ValueError:
        return None


def language_id_for(language: Language) -> int:
    return LANGUAGE_IDS[language]
