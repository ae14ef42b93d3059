"""
Prompt construction, structured-output schema, and localized fixed messages.
"""

from __future__ import annotations

from typing import Dict

from .errors import ConfigurationError
from .utils import truncate

MAX_CSV_CHARS = 20000

LANGUAGE_NAMES: Dict[str, str] = {
    "en": "English",
    "ja": "Japanese",
    "fr": "French",
}

# Messages for results synthesized locally (no LLM involved).
MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "exact_match": "No changes detected (Exact match).",
        "sheet_added": "Entire sheet added.",
        "sheet_removed": "Entire sheet removed.",
        "sheet_added_desc": "New sheet added to the specification",
        "sheet_removed_desc": "Sheet removed from the specification",
        "unknown_error": "Unknown error",
        "no_content": "No content generated.",
        "no_summary": "No summary provided.",
        "cancelled": "Skipped: comparison was cancelled.",
    },
    "ja": {
        "exact_match": "変更なし（完全一致）",
        "sheet_added": "シート追加",
        "sheet_removed": "シート削除",
        "sheet_added_desc": "仕様書に新しいシートが追加されました",
        "sheet_removed_desc": "仕様書からシートが削除されました",
        "unknown_error": "不明なエラー",
        "no_content": "応答が生成されませんでした。",
        "no_summary": "概要はありません。",
        "cancelled": "スキップ: 比較はキャンセルされました。",
    },
    "fr": {
        "exact_match": "Aucun changement détecté (Correspondance exacte).",
        "sheet_added": "Feuille entière ajoutée.",
        "sheet_removed": "Feuille entière supprimée.",
        "sheet_added_desc": "Nouvelle feuille ajoutée à la spécification",
        "sheet_removed_desc": "Feuille supprimée de la spécification",
        "unknown_error": "Erreur inconnue",
        "no_content": "Aucun contenu généré.",
        "no_summary": "Aucun résumé fourni.",
        "cancelled": "Ignorée : la comparaison a été annulée.",
    },
}

# Gemini-style (OpenAPI subset) schema used for backend-enforced output.
DIFF_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "diffs": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "type": {
                        "type": "STRING",
                        "enum": ["TABLE", "COLUMN", "INDEX", "TRIGGER", "CONSTRAINT", "OTHER"],
                        "description": "The type of database object that changed.",
                    },
                    "action": {
                        "type": "STRING",
                        "enum": ["ADDED", "REMOVED", "MODIFIED"],
                        "description": "The nature of the change.",
                    },
                    "target": {
                        "type": "STRING",
                        "description": "The name of the object (e.g., 'Users table', 'email column').",
                    },
                    "description": {
                        "type": "STRING",
                        "description": "A concise summary of what changed (e.g., 'Length increased from 50 to 100').",
                    },
                    "oldValue": {
                        "type": "STRING",
                        "description": "The value in the old version (if applicable).",
                    },
                    "newValue": {
                        "type": "STRING",
                        "description": "The value in the new version (if applicable).",
                    },
                },
                "required": ["type", "action", "target", "description"],
            },
        },
        "summary": {
            "type": "STRING",
            "description": "A very brief executive summary of changes in this sheet.",
        },
    },
    "required": ["diffs", "summary"],
}

_SCHEMA_TEXT = (
    "JSON Schema for output:\n"
    "{\n"
    '  "diffs": [\n'
    "    {\n"
    '      "type": "TABLE" | "COLUMN" | "INDEX" | "TRIGGER" | "CONSTRAINT" | "OTHER",\n'
    '      "action": "ADDED" | "REMOVED" | "MODIFIED",\n'
    '      "target": "string (name of object)",\n'
    '      "description": "string (concise summary)",\n'
    '      "oldValue": "string (optional)",\n'
    '      "newValue": "string (optional)"\n'
    "    }\n"
    "  ],\n"
    '  "summary": "string (executive summary)"\n'
    "}"
)


def check_language(language: str) -> str:
    if language not in LANGUAGE_NAMES:
        supported = ", ".join(sorted(LANGUAGE_NAMES))
        raise ConfigurationError(f"Unsupported language '{language}'. Supported: {supported}.")
    return language


def message(language: str, key: str) -> str:
    return MESSAGES[check_language(language)][key]


def build_system_prompt(language: str) -> str:
    name = LANGUAGE_NAMES[check_language(language)]
    return (
        "You are a Senior Database Architect and an expert in analyzing Database Definition "
        "Documents (Excel/CSV format).\n"
        "You are a precise and technical Database Doc Diff tool performing a structured technical diff.\n"
        "Output must be in pure JSON format.\n"
        f"Provide the 'description' field and the 'summary' field in {name}.\n"
    )


def build_user_prompt(sheet_name: str, old_csv: str, new_csv: str) -> str:
    """Both CSV bodies are cut to MAX_CSV_CHARS characters from the left."""
    return (
        f'Task: Compare the "Old Version" and "New Version" of the database definition sheet named "{sheet_name}".\n\n'
        "Instructions:\n"
        "1. Identify semantic changes related to RDB structures: Tables, Columns, Data Types, Lengths, "
        "Nullability, Primary Keys, Foreign Keys, Indexes, Triggers, and Comments/Descriptions.\n"
        "2. Ignore purely cosmetic changes like cell formatting, empty rows, or minor whitespace "
        "differences unless they change the meaning.\n"
        "3. Pay special attention to:\n"
        "   - Column Type changes (e.g., VARCHAR(50) -> VARCHAR(100), INT -> BIGINT).\n"
        "   - Nullability changes (NULL -> NOT NULL).\n"
        "   - New or removed columns.\n"
        "   - Index definition changes.\n"
        "4. Return the result as a structured JSON object.\n\n"
        "Old Version (CSV):\n"
        "```csv\n"
        f"{truncate(old_csv, MAX_CSV_CHARS)}\n"
        "```\n\n"
        "New Version (CSV):\n"
        "```csv\n"
        f"{truncate(new_csv, MAX_CSV_CHARS)}\n"
        "```\n\n"
        f"{_SCHEMA_TEXT}"
    )
