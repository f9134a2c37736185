"""
多语言模块
Localization module

Locale files live in ``utils/locales/<lang>.json`` as flat ``key -> text``
mappings. Text uses ``str.format`` positional fields.
"""

import os.path
from glob import glob
from typing import Dict, List, Optional

import orjson as json

from manager import manager

LOCALES_DIR = os.path.join(os.path.dirname(__file__), "locales")
FALLBACK_LANG = "en_US"

logger = manager.logger


class I18n:
    def __init__(self, path: str = LOCALES_DIR):
        self.path = path
        self._locales: Optional[Dict[str, Dict[str, str]]] = None

    @property
    def locales(self) -> Dict[str, Dict[str, str]]:
        if self._locales is None:
            self._locales = self.load()
        return self._locales

    def load(self) -> Dict[str, Dict[str, str]]:
        locales = {}
        for filename in sorted(glob(os.path.join(self.path, "*.json"))):
            lang = os.path.splitext(os.path.basename(filename))[0]
            with open(filename, "rb") as f:
                locales[lang] = json.loads(f.read())
            logger.debug(f"locale {lang} is loaded with {len(locales[lang])} keys")
        return locales

    def langs(self) -> List[str]:
        return list(self.locales)

    def default_lang(self) -> str:
        if "i18n" in manager.config:
            return manager.config["i18n"].get("default_lang", FALLBACK_LANG)
        return FALLBACK_LANG

    def lookup(self, lang: str, key: str) -> str:
        for candidate in (lang, self.default_lang(), FALLBACK_LANG):
            text = self.locales.get(candidate, {}).get(key)
            if text is not None:
                return text

        logger.warning(f"locale key {key} is missing for {lang}")
        return key

    def format(self, lang: str, key: str, *args) -> str:
        return self.lookup(lang, key).format(*args)


i18n = I18n()
