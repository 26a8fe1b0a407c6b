"""History of recognized text, newest first, saved to history.json in the app directory."""

import json
import os
import shutil
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from dataclasses_json import dataclass_json

from TextSnip.util.clipboard import copy_text
from TextSnip.util.config.configuration import get_app_directory
from TextSnip.util.logging_config import logger

DEFAULT_MAX_ENTRIES = 100
TITLE_LENGTH = 50


def get_history_path():
    return os.path.join(get_app_directory(), 'history.json')


def generate_title(text: str) -> str:
    """First line of the text, trimmed and shortened to fit a menu row."""
    first_line = text.splitlines()[0] if text else ""
    trimmed = first_line.strip()
    if not trimmed:
        return "Untitled"
    if len(trimmed) <= TITLE_LENGTH:
        return trimmed
    return trimmed[:TITLE_LENGTH - 3] + "..."


@dataclass_json
@dataclass(frozen=True)
class CaptureEntry:
    text: str
    title: str = ""
    source_application: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: float = field(default_factory=lambda: datetime.now().timestamp())

    @classmethod
    def create(cls, text: str, source_application: Optional[str] = None) -> "CaptureEntry":
        return cls(text=text, title=generate_title(text), source_application=source_application)


class CaptureHistoryStore:
    """Capture history backed by a JSON file; every change is written straight back."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES, path: Optional[str] = None):
        self.max_entries = max_entries
        self.path = path or get_history_path()
        self.captures: List[CaptureEntry] = self._load()

    def __len__(self):
        return len(self.captures)

    def _load(self) -> List[CaptureEntry]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            captures = [CaptureEntry.from_dict(item) for item in data.get('captures', [])]
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Error reading history.json, saving backup and starting empty: {e}")
            shutil.copy(self.path, self.path + '.bak')
            return []
        logger.debug(f"Loaded {len(captures)} history entries from {self.path}")
        return captures[:self.max_entries]

    def save(self):
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump({'captures': [c.to_dict() for c in self.captures]}, f, indent=4, ensure_ascii=False)

    def add_capture(self, text: str, source_application: Optional[str] = None) -> CaptureEntry:
        entry = CaptureEntry.create(text, source_application)
        self.captures.insert(0, entry)
        del self.captures[self.max_entries:]
        self.save()
        logger.debug(f"Added capture '{entry.title}' to history ({len(self.captures)} entries)")
        return entry

    def get(self, entry_id: str) -> Optional[CaptureEntry]:
        return next((c for c in self.captures if c.id == entry_id), None)

    def delete_capture(self, entry_id: str) -> bool:
        before = len(self.captures)
        self.captures = [c for c in self.captures if c.id != entry_id]
        if len(self.captures) == before:
            return False
        self.save()
        return True

    def clear(self):
        self.captures.clear()
        self.save()

    def copy_to_clipboard(self, entry: CaptureEntry) -> bool:
        return copy_text(entry.text)
