import glob
import logging
import os
import random
from typing import Any, Dict, List, Optional

import pandas as pd

from .errors import NotFoundError

logger = logging.getLogger(__name__)

FALLBACK_WORDS = [
    "the", "be", "of", "and", "a", "to", "in", "he", "have", "it",
    "that", "for", "they", "with", "as", "not", "on", "she", "at", "by",
    "this", "we", "you", "do", "but", "from", "or", "which", "one", "would",
]


class VocabularyManager:
    """Loads the per-language source pools from CSV files (one ``word`` column each)."""

    def __init__(self, directory: str):
        self.directory = directory
        self.pools: Dict[str, List[str]] = {}

    def load_all(self):
        self.pools = {}
        if not os.path.exists(self.directory):
            os.makedirs(self.directory)
            logger.warning(f"Created directory {self.directory}. Please add CSV files.")

        csv_files = glob.glob(os.path.join(self.directory, "*.csv"))
        for file_path in csv_files:
            try:
                language = os.path.splitext(os.path.basename(file_path))[0]
                df = pd.read_csv(file_path, encoding="utf-8")
                if "word" not in df.columns:
                    logger.error(f"Skipping {language}: Missing 'word' column.")
                    continue
                words = df["word"].dropna().astype(str).str.strip()
                words = words[words != ""].tolist()
                if not words:
                    logger.warning(f"Skipping {language}: no words.")
                    continue
                self.pools[language] = words
                logger.info(f"Loaded {len(words)} words for {language}")
            except Exception as e:
                logger.error(f"Failed to load {file_path}: {e}")

        if not self.pools:
            logger.warning("No CSV files found. Loading fallback English words.")
            self.pools["english"] = list(FALLBACK_WORDS)

    def has_language(self, language: str) -> bool:
        return language in self.pools

    def get_words(self, language: str) -> List[str]:
        if language not in self.pools:
            raise NotFoundError("Language not found")
        return self.pools[language]

    def sample(
        self, language: str, count: int, rng: Optional[random.Random] = None
    ) -> List[str]:
        """Random words without replacement, at most the size of the pool."""
        words = self.get_words(language)
        rng = rng or random
        return rng.sample(words, min(max(count, 0), len(words)))

    def get_languages(self) -> List[Dict[str, Any]]:
        languages = []
        for key, words in self.pools.items():
            display_name = key.replace("_", " ").title()
            languages.append({"id": key, "name": display_name, "count": len(words)})
        languages.sort(key=lambda x: x["name"])
        return languages
