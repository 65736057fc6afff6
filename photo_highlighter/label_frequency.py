"""
Running label statistics for a photo collection.
Counts how often each label, and each unordered pair of labels, occurs
across all photos added to a session. Uniqueness scoring reads these.
"""
from collections import Counter
from typing import Iterable, Sequence
import logging

from .models import Label


class LabelFrequencyTracker:
    """Monotonic label and label-pair occurrence counts"""

    PAIR_SEPARATOR = '|'

    def __init__(self):
        self.individual = Counter()
        self.combinations = Counter()
        self.logger = logging.getLogger(__name__)

    @classmethod
    def pair_key(cls, first: str, second: str) -> str:
        return cls.PAIR_SEPARATOR.join(sorted([first, second]))

    def update(self, labels: Sequence[Label]):
        """Count one photo's labels and every pair of them"""
        for label in labels:
            self.individual[label.description] += 1

        for i in range(len(labels) - 1):
            for j in range(i + 1, len(labels)):
                key = self.pair_key(labels[i].description, labels[j].description)
                self.combinations[key] += 1

        self.logger.debug(f"Tracked {len(labels)} labels, "
                          f"{len(self.individual)} distinct labels so far")

    def update_many(self, label_lists: Iterable[Sequence[Label]]):
        for labels in label_lists:
            self.update(labels)

    def individual_count(self, description: str) -> int:
        """Occurrences of a label, never less than 1"""
        return self.individual.get(description) or 1

    def pair_count(self, first: str, second: str) -> int:
        """Co-occurrences of two labels, never less than 1"""
        return self.combinations.get(self.pair_key(first, second)) or 1

    def snapshot(self) -> 'LabelFrequencyTracker':
        """Independent copy for a selection pass"""
        copy = LabelFrequencyTracker()
        copy.individual = Counter(self.individual)
        copy.combinations = Counter(self.combinations)
        return copy
