"""
Label alphabet and the static label -> action table.
"""
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from .config import AlphabetConfig
from .types import Action, AppendLetter, ClearOutput, TriggerSearch

LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
ACTION_CLEAR = "CLEAR"
ACTION_COMMIT_SEARCH = "SEARCH"


class Alphabet:
    """
    Fixed set of labels the classifier may emit.

    Letters map to AppendLetter, the two control labels map to ClearOutput
    and TriggerSearch. The table is built once and never changes.
    """

    def __init__(self, letters: Iterable[str] = LETTERS,
                 clear_label: str = ACTION_CLEAR,
                 search_label: str = ACTION_COMMIT_SEARCH):
        letters = tuple(letters)
        if clear_label == search_label or clear_label in letters or search_label in letters:
            raise ValueError("control labels must be distinct from each other and from letters")
        if len(set(letters)) != len(letters):
            raise ValueError("letters must be unique")

        self.letters: Tuple[str, ...] = letters
        self.clear_label = clear_label
        self.search_label = search_label
        self._actions: Dict[str, Action] = {letter: AppendLetter(letter) for letter in letters}
        self._actions[clear_label] = ClearOutput()
        self._actions[search_label] = TriggerSearch()

    @classmethod
    def from_config(cls, cfg: AlphabetConfig) -> "Alphabet":
        return cls(cfg.letters, cfg.clear_label, cfg.search_label)

    @property
    def labels(self) -> Tuple[str, ...]:
        """Labels in classifier output order."""
        return self.letters + (self.clear_label, self.search_label)

    @property
    def label_set(self) -> FrozenSet[str]:
        return frozenset(self._actions)

    def __contains__(self, label: object) -> bool:
        return label in self._actions

    def __len__(self) -> int:
        return len(self._actions)

    def action_for(self, label: str) -> Optional[Action]:
        """Return the action for a label, or None when the label is unknown."""
        return self._actions.get(label)


DEFAULT_ALPHABET = Alphabet()
