"""
A character-level Markov model over single-byte characters.

"""

import logging
import random
from typing import Dict, List, Optional, Sequence, Union
from collections import defaultdict, Counter

# Code 0 marks "end of text" as a follower and "no continuation" as a sample
NO_CHARACTER = '\x00'
ALPHABET_SIZE = 256


class MarkovModel:
    """Frequency table of k-gram -> next character counts with seeded sampling."""

    def __init__(self, order: int, seed: Optional[int] = None, rng=None):
        """Initialize with the k-gram length and a seed (or an injected generator).

        ``rng`` may be any object with a ``randrange(stop)`` method; when it
        is given the seed is not used.
        """
        if isinstance(order, bool) or not isinstance(order, int):
            raise ValueError(f"Order must be an integer, got {order!r}")
        if order < 1:
            raise ValueError(f"Order must be at least 1, got {order}")

        self._order = order
        self._rng = rng if rng is not None else random.Random(seed)
        self._table = defaultdict(Counter)

    @property
    def order(self) -> int:
        return self._order

    @staticmethod
    def clean_text(text: Union[str, bytes, bytearray, Sequence[int]]) -> str:
        """Return ``text`` as a str with every NUL removed.

        Bytes are decoded as Latin-1 so byte values map to the same codes.
        Any other sequence is read as integer character codes.
        """
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode('latin-1')
        elif not isinstance(text, str):
            codes = list(text)
            for code in codes:
                if isinstance(code, bool) or not isinstance(code, int):
                    raise ValueError(f"Character code must be an integer, got {code!r}")
                if not 0 <= code < ALPHABET_SIZE:
                    raise ValueError(f"Character code {code} is outside the single-byte alphabet")
            text = ''.join(map(chr, codes))
        for ch in text:
            if ord(ch) >= ALPHABET_SIZE:
                raise ValueError(f"Character {ch!r} is outside the single-byte alphabet")
        return text.replace(NO_CHARACTER, '')

    def ingest(self, text: Union[str, bytes, bytearray, Sequence[int]]) -> None:
        """Count every k-gram of ``text`` together with the character that follows it."""
        text = self.clean_text(text)
        order = self._order

        windows = 0
        for i in range(len(text) - order + 1):
            kgram = text[i:i + order]
            follower = NO_CHARACTER if i + order == len(text) else text[i + order]
            self._table[kgram][follower] += 1
            windows += 1

        logging.debug(f"Ingested {len(text)} characters: {windows} windows, "
                      f"{len(self._table)} distinct k-grams")

    def frequency_of(self, kgram: str, character: Union[str, int, None] = None) -> int:
        """Return how often ``kgram`` occurred, or how often ``character`` followed it."""
        if len(kgram) != self._order:
            return 0
        followers = self._table.get(kgram)
        if followers is None:
            return 0
        if character is None:
            return sum(followers.values())
        if isinstance(character, int):
            if not 0 <= character < ALPHABET_SIZE:
                return 0
            character = chr(character)
        return followers.get(character, 0)

    def sample_next(self, kgram: str) -> str:
        """Draw the next character after ``kgram``, or NO_CHARACTER if it is unknown."""
        if len(kgram) != self._order or kgram not in self._table:
            return NO_CHARACTER

        total = self.frequency_of(kgram)
        r = self._rng.randrange(total)

        # Scan the whole alphabet in ascending order, never the stored followers
        interval_start = 0
        for code in range(ALPHABET_SIZE):
            freq = self.frequency_of(kgram, code)
            if freq == 0:
                continue
            if freq + interval_start >= r:
                return chr(code)
            interval_start += freq

        return NO_CHARACTER

    def followers(self, kgram: str) -> Dict[str, int]:
        """Return a copy of the follower counts recorded for ``kgram``."""
        followers = self._table.get(kgram)
        return dict(followers) if followers is not None else {}

    def kgrams(self) -> List[str]:
        return sorted(self._table)

    def get_stats(self) -> Dict:
        """Return basic statistics about the trained model."""
        if not self._table:
            return {"contexts": 0, "total_transitions": 0, "avg_transitions_per_context": 0.0}

        total_transitions = sum(sum(counter.values()) for counter in self._table.values())
        return {
            "contexts": len(self._table),
            "total_transitions": total_transitions,
            "avg_transitions_per_context": total_transitions / len(self._table)
        }

    def __contains__(self, kgram) -> bool:
        return kgram in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"MarkovModel(order={self._order}, contexts={len(self._table)})"
