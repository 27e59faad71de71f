from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List

from bethyw.core.errors import NotFoundError
from bethyw.core.measure import Measure

# Names are printed in this order, then any other language codes alphabetically
PREFERRED_LANGUAGES = ("eng", "cym")


@dataclass
class Area:
    """
    A local authority area: its names in one or more languages and the
    measures imported for it, keyed by lower-cased measure codename.
    """
    local_authority_code: str
    names: Dict[str, str] = field(default_factory=dict)
    measures: Dict[str, Measure] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------

    def get_name(self, lang: str) -> str:
        try:
            return self.names[lang]
        except KeyError:
            raise NotFoundError(
                f"No name in language {lang} for area {self.local_authority_code}"
            ) from None

    def set_name(self, lang: str, name: str) -> None:
        self.names[lang] = name

    def _ordered_languages(self) -> List[str]:
        preferred = [lang for lang in PREFERRED_LANGUAGES if lang in self.names]
        others = sorted(lang for lang in self.names if lang not in PREFERRED_LANGUAGES)
        return preferred + others

    # ------------------------------------------------------------------
    # Measures
    # ------------------------------------------------------------------

    def get_measure(self, codename: str) -> Measure:
        try:
            return self.measures[codename.lower()]
        except KeyError:
            raise NotFoundError(
                f"No measure found matching {codename} in area {self.local_authority_code}"
            ) from None

    def set_measure(self, codename: str, measure: Measure) -> None:
        """
        Add a measure, or fold it into the existing measure with the same
        codename (incoming readings replace those for the same year).
        """
        key = codename.lower()
        existing = self.measures.get(key)
        if existing is None:
            self.measures[key] = measure.copy()
        else:
            existing.merge(measure)

    def copy(self) -> "Area":
        return Area(
            self.local_authority_code,
            dict(self.names),
            {key: measure.copy() for key, measure in self.measures.items()},
        )

    def __len__(self) -> int:
        return len(self.measures)

    def __iter__(self) -> Iterator[Measure]:
        for key in sorted(self.measures):
            yield self.measures[key]

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    def merge(self, other: "Area") -> None:
        """
        Combine other into this Area. Other is the newer data: its names
        replace names in the same language and its readings replace readings
        for the same measure and year. Everything else here is kept.
        """
        self.names.update(other.names)
        for codename, measure in other.measures.items():
            self.set_measure(codename, measure)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "names": {lang: self.names[lang] for lang in sorted(self.names)},
            "measures": {key: self.measures[key].to_dict() for key in sorted(self.measures)},
        }

    def to_json(self) -> str:
        return json.dumps(
            {self.local_authority_code: self.to_dict()},
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        )

    def __str__(self) -> str:
        names = " / ".join(self.names[lang] for lang in self._ordered_languages())
        header = f"{names} ({self.local_authority_code})" if names else f"({self.local_authority_code})"
        blocks = [str(measure) for measure in self]
        if not blocks:
            return header
        return header + "\n" + "\n\n".join(blocks)
