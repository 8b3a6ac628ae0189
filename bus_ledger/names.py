"""Driver-name cleanup for free-text cells.

Each dataset kind writes names a little differently ("KH LXE Hùng 0912...",
"Tài TC: Nam - 29B...", "Lái xe Đoàn Cường bks 20A"), so the prefix and stop
vocabularies are data; the algorithm is the same for all of them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from bus_ledger.normalization import title_case

LEADING_PUNCTUATION_RE = re.compile(r"^[:.\-_,\s]+")
TRAILING_PUNCTUATION_RE = re.compile(r"[.\-_,;:]+$")
MIN_NAME_LENGTH = 2


@dataclass(frozen=True)
class NameVocabulary:
    prefix_re: re.Pattern
    stop_re: re.Pattern


def build_vocabulary(prefixes: tuple[str, ...], stops: str) -> NameVocabulary:
    # Longest alternatives first so "kh lái xe" is preferred over "kh".
    ordered = sorted(prefixes, key=len, reverse=True)
    prefix_re = re.compile(r"^(?:" + "|".join(ordered) + r")[\s:.\-_]+", re.IGNORECASE)
    return NameVocabulary(prefix_re=prefix_re, stop_re=re.compile(stops, re.IGNORECASE))


_CHAT_PREFIXES = ("e", "a", "c", "em", "anh", "chị", "chú", "bác")
_DRIVER_LABELS = (
    r"kh\s*lxe",
    r"kh\s*lái\s*xe",
    r"khách\s*lxe",
    r"khách\s*lái\s*xe",
    r"kh\s*xe",
    r"lái\s*xe",
    r"tài\s*xế",
    r"nhân\s*viên",
    "nv",
)
_SHORT_STOPS = r"[\d.,;:()/\\!?\-_\n]+|\s+bus\b|\s+bks\b|\s+xe\s+\d+"

VOCABULARIES = {
    "daily": build_vocabulary(_CHAT_PREFIXES + _DRIVER_LABELS, _SHORT_STOPS),
    "self": build_vocabulary(_CHAT_PREFIXES + _DRIVER_LABELS + ("mr", "ms", "mrs"), _SHORT_STOPS),
    "transit": build_vocabulary(
        (
            r"tài\s*trung\s*chuyển",
            r"tài\s*tc",
            r"lx\s*trung\s*chuyển",
            r"lái\s*xe\s*tc",
            r"lx\s*tc",
            r"tài\s*xế\s*tc",
            r"xe\s*tc",
            r"trung\s*chuyển",
            r"lái\s*xe",
            r"tài\s*xế",
            r"nhân\s*viên",
            "nv",
            "mr",
            "ms",
            "anh",
            "chị",
            "em",
        ),
        r"[\d.,;:()/\\!?\-_\n]+|\s+bks\b|\s+xe\s+",
    ),
    "roster": build_vocabulary(
        _DRIVER_LABELS
        + (r"tên\s*lái", "driver", r"phụ\s*xe", r"tiếp\s*viên", "tài", "mr", "ms"),
        r"[/\\|()\d]+|\s+(?:bus|bks|xe|biển)\b\s*\w*|\s*-\s*",
    ),
}


def clean_name(raw: str, vocabulary: NameVocabulary | str = "daily") -> str:
    """Strip the role label, cut at the first noise token, title-case the rest.

    Returns '' when nothing name-like survives. Callers still reject results
    shorter than MIN_NAME_LENGTH.
    """
    if isinstance(vocabulary, str):
        vocabulary = VOCABULARIES[vocabulary]
    name = (raw or "").strip()
    name = vocabulary.prefix_re.sub("", name, count=1)
    name = LEADING_PUNCTUATION_RE.sub("", name)
    name = vocabulary.stop_re.split(name, maxsplit=1)[0].strip()
    name = TRAILING_PUNCTUATION_RE.sub("", name).strip()
    return title_case(name)


def is_usable_name(name: str) -> bool:
    return len(name) >= MIN_NAME_LENGTH
