import json
import os
import shutil
from dataclasses import dataclass, field
from sys import platform

import toml
from dataclasses_json import dataclass_json

from TextSnip.ocr.reading_order import ReadingMode
from TextSnip.util.logging_config import logger

APP_NAME = 'TextSnip'

RAPIDOCR = 'rapidocr'
TESSERACT = 'tesseract'


def get_app_directory():
    if platform == 'win32':  # Windows
        appdata_dir = os.getenv('APPDATA')
    else:  # macOS and Linux
        appdata_dir = os.path.expanduser('~/.config')
    config_dir = os.path.join(appdata_dir, APP_NAME)
    os.makedirs(config_dir, exist_ok=True)
    return config_dir


def get_config_path():
    return os.path.join(get_app_directory(), 'config.json')


@dataclass_json
@dataclass
class General:
    auto_copy_to_clipboard: bool = True
    show_notification: bool = True
    recognition_language: str = 'en-US'
    line_aware_ocr: bool = True
    ocr_engine: str = RAPIDOCR


@dataclass_json
@dataclass
class Selection:
    # Drags at or below this size (global units) are treated as accidental clicks
    min_selection_size: float = 5.0
    # Time for the overlay windows to disappear before the screen is grabbed
    settle_delay_seconds: float = 0.2


@dataclass_json
@dataclass
class Hotkeys:
    capture: str = 'ctrl+shift+2'
    history: str = 'ctrl+shift+h'
    cancel: str = 'esc'


@dataclass_json
@dataclass
class History:
    max_entries: int = 100


@dataclass_json
@dataclass
class Config:
    general: General = field(default_factory=General)
    selection: Selection = field(default_factory=Selection)
    hotkeys: Hotkeys = field(default_factory=Hotkeys)
    history: History = field(default_factory=History)

    @property
    def reading_mode(self) -> ReadingMode:
        return ReadingMode.LINE_AWARE if self.general.line_aware_ocr else ReadingMode.RAW_ORDER

    def save(self, path=None):
        path = path or get_config_path()
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=4)
        logger.debug(f"Saved config to {path}")

    @classmethod
    def load_from_toml(cls, file_path: str) -> 'Config':
        with open(file_path, 'r', encoding='utf-8') as f:
            config_data = toml.load(f)
        return cls.from_dict(config_data)


def load_config() -> Config:
    config_path = get_config_path()

    if os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as file:
                return Config.from_dict(json.load(file))
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing config.json, saving backup and returning new config: {e}")
            shutil.copy(config_path, config_path + '.bak')
            config = Config()
            config.save(config_path)
            return config
    elif os.path.exists('config.toml'):
        logger.info("Importing settings from config.toml")
        config = Config.load_from_toml('config.toml')
        config.save(config_path)
        return config
    else:
        config = Config()
        config.save(config_path)
        return config


config_instance: Config = None


def get_config() -> Config:
    global config_instance
    if config_instance is None:
        config_instance = load_config()
    return config_instance


def reload_config() -> Config:
    global config_instance
    config_instance = load_config()
    return config_instance
