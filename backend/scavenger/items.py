"""Scavenger item catalog.

Labels are what players see and what classifier tags are matched against.
Stapler and tape were tried and dropped: the vision service rarely tags them.
"""

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class Item:
    label: str
    hint: str

    def to_dict(self):
        return {'label': self.label, 'hint': self.hint}


ITEMS: List[Item] = [
    Item('Pen', 'You write with it, not type.'),
    Item('Scissors', "Careful! Don't run with it!"),
    Item('Notebook', 'Lines, pages, and notes.'),
    Item('Paper Clip', 'It keeps your papers together.'),
]


def get_random_item(items: Optional[Sequence[Item]] = None, rng=random) -> Item:
    """Pick uniformly from the catalog. Consecutive repeats are allowed."""
    pool = items if items else ITEMS
    return rng.choice(pool)
