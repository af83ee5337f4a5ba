"""Parser for the pipe-delimited live-timing feed.

The feed is one long string of `|`-separated tokens:

    *=CD|hN=C12=Boys Slalom|hR=Demo Hill|hST=2026-02-11 10:00|
    *=C|I=1|b=101|n=Reed, Alex|t=North|c=VM|endC|
    *=R|I=1|r=0=43.20|r=1=44.02|f=1:27.22|endR

Block markers switch the tokenizer between header, competitor and result
blocks. Competitor and result records are joined on the identity key `I`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from .models import RawRecord

COMPETITOR_MARKER = "*=C"
RESULT_MARKER = "*=R"
HEADER_MARKER = "*=CD"
OTHER_MARKERS = ("*=OC", "*=Photos")
END_COMPETITOR = "endC"
END_RESULT = "endR"

IDENTITY_KEY = "I"
RUN_KEY = "r"

_HEADER_KEY = re.compile(r"^h[A-Za-z]+$")
_RUN_STATUS = re.compile(r"\b(DNF|DNS|DSQ|DQ)\b", re.IGNORECASE)


class PipeMode(str, Enum):
    """Block the tokenizer is currently inside."""

    HEADER = "header"
    COMPETITOR = "competitor"
    RESULT = "result"
    OTHER = "other"


@dataclass
class PipeFeed:
    """Tokenized pipe feed before competitor/result merge."""

    metadata: dict[str, str] = field(default_factory=dict)
    competitors: list[RawRecord] = field(default_factory=list)
    results: list[RawRecord] = field(default_factory=list)


def is_pipe_feed(raw: str) -> bool:
    """Both a competitor block and a result block must be present."""
    return COMPETITOR_MARKER in raw and RESULT_MARKER in raw


def split_key_value(token: str) -> tuple[str, str] | None:
    """Split "key=value" on the first "=" ("r=0=43.20" → ("r", "0=43.20"))."""
    index = token.find("=")
    if index <= 0:
        return None
    key = token[:index].strip()
    if not key:
        return None
    return key, token[index + 1:].strip()


def _append(record: RawRecord, key: str, value: str) -> None:
    existing = str(record.get(key) or "").strip()
    record[key] = f"{existing},{value}" if existing else value


class PipeTokenizer:
    """State machine over pipe tokens.

    `feed()` is the single transition function: markers change the mode and
    flush open records, key/value tokens are routed by the current mode.
    """

    def __init__(self) -> None:
        self.mode = PipeMode.HEADER
        self.feed_data = PipeFeed()
        self._competitor: RawRecord | None = None
        self._result: RawRecord | None = None

    # === Flushing ===

    def _flush_competitor(self) -> None:
        if self._competitor and self._competitor.get(IDENTITY_KEY):
            self.feed_data.competitors.append(self._competitor)
        self._competitor = None

    def _flush_result(self) -> None:
        if self._result and self._result.get(IDENTITY_KEY):
            self.feed_data.results.append(self._result)
        self._result = None

    # === Transitions ===

    def feed(self, token: str) -> None:
        if token == HEADER_MARKER:
            self.mode = PipeMode.HEADER
        elif token == COMPETITOR_MARKER:
            self._flush_competitor()
            self.mode = PipeMode.COMPETITOR
        elif token in OTHER_MARKERS:
            self.mode = PipeMode.OTHER
        elif token == RESULT_MARKER:
            self._flush_competitor()
            self._flush_result()
            self.mode = PipeMode.RESULT
            self._result = {}
        elif token == END_COMPETITOR:
            self._flush_competitor()
            self.mode = PipeMode.OTHER
        elif token == END_RESULT:
            self._flush_result()
            self.mode = PipeMode.OTHER
        else:
            kv = split_key_value(token)
            if kv is not None:
                self._feed_pair(*kv)

    def _feed_pair(self, key: str, value: str) -> None:
        if self.mode == PipeMode.HEADER:
            if _HEADER_KEY.match(key):
                self.feed_data.metadata[key] = value

        elif self.mode == PipeMode.COMPETITOR:
            if key == IDENTITY_KEY:
                self._flush_competitor()
                self._competitor = {IDENTITY_KEY: value}
            elif self._competitor is not None:
                self._competitor[key] = value

        elif self.mode == PipeMode.RESULT:
            if key == IDENTITY_KEY:
                self._flush_result()
                self._result = {IDENTITY_KEY: value}
                return
            if self._result is None:
                self._result = {}
            if key == RUN_KEY:
                run = split_key_value(value)
                if run is not None:
                    run_index, run_time = run
                    _append(self._result, "runSeq", run_time)
                    _append(self._result, f"run{run_index}", run_time)
                    _append(self._result, "runRaw", run_time)
                return
            self._result[key] = value

    def close(self) -> PipeFeed:
        self._flush_competitor()
        self._flush_result()
        return self.feed_data


def tokenize(raw: str) -> list[str]:
    return [token.strip() for token in raw.split("|") if token.strip()]


def parse_pipe_feed(raw: str) -> PipeFeed | None:
    """Tokenize a pipe feed, or None if the markers are missing."""
    if not is_pipe_feed(raw):
        return None
    tokenizer = PipeTokenizer()
    for token in tokenize(raw):
        tokenizer.feed(token)
    return tokenizer.close()


# =============================================================================
# Merge
# =============================================================================


def classify_class_code(value: str | None) -> tuple[str | None, str | None]:
    """Split a class code into (gender hint, roster type).

    "JVM" → ("M", "JV"), "VF" → ("F", "VARSITY"), "V" → (None, "V").
    Unrecognized codes are passed through as the gender hint.
    """
    text = (value or "").strip()
    upper = text.upper()

    if upper in ("JVM", "MJV"):
        return "M", "JV"
    if upper in ("JVF", "FJV"):
        return "F", "JV"
    if upper == "VM":
        return "M", "VARSITY"
    if upper == "VF":
        return "F", "VARSITY"
    if upper in ("M", "MALE", "MEN", "BOYS"):
        return "M", None
    if upper in ("F", "FEMALE", "WOMEN", "GIRLS", "L"):
        return "F", None
    if upper in ("V", "VARSITY", "JV", "JUNIOR VARSITY"):
        return None, text
    return (text or None), None


def _run_slots(result: RawRecord, sequence: list[str]) -> tuple[str, str]:
    """Assign run times to the run0/run1 slots.

    Some feeds repeat r=0 for both runs, so two or more sequence entries are
    taken in order. A single entry stays in whichever slot was indexed.
    """
    indexed0 = str(result.get("run0") or "").strip()
    indexed1 = str(result.get("run1") or "").strip()

    if len(sequence) >= 2:
        return sequence[0], sequence[1]
    if len(sequence) == 1:
        if indexed0 and not indexed1:
            return sequence[0], ""
        if indexed1 and not indexed0:
            return "", sequence[0]
        if not indexed0 and not indexed1:
            return sequence[0], ""
    return indexed0, indexed1


def _run_status(run0: str, run1: str, run_raw: str, final: str) -> str:
    for value in (run0, run1, run_raw):
        match = _RUN_STATUS.search(value)
        if match:
            return match.group(1).lower()
    return "ok" if final else "unknown"


def merge_rows(parsed: PipeFeed) -> list[RawRecord]:
    """Join competitor and result records on `I` into flat athlete rows."""
    competitors: dict[str, RawRecord] = {}
    for record in parsed.competitors:
        athlete_id = str(record.get(IDENTITY_KEY) or "").strip()
        if athlete_id:
            competitors[athlete_id] = record

    results: dict[str, RawRecord] = {}
    for record in parsed.results:
        athlete_id = str(record.get(IDENTITY_KEY) or "").strip()
        if athlete_id:
            results[athlete_id] = record

    rows: list[RawRecord] = []
    for athlete_id in dict.fromkeys([*competitors, *results]):
        result = results.get(athlete_id, {})
        base = competitors.get(athlete_id, {})
        gender, roster_type = classify_class_code(base.get("c"))

        run_seq = str(result.get("runSeq") or "").strip()
        sequence = [v.strip() for v in run_seq.split(",") if v.strip()]
        run0, run1 = _run_slots(result, sequence)
        run_raw = str(result.get("runRaw") or "").strip()
        final = str(result.get("f") or "").strip()
        total = final or run0 or run1 or (sequence[0] if sequence else "")

        bib = base.get("b")
        row: RawRecord = {
            "athleteId": athlete_id,
            "I": athlete_id,
            "bib": bib if bib is not None else base.get("bib"),
            "b": bib,
            "name": base.get("n"),
            "n": base.get("n"),
            "gender": gender,
            "c": base.get("c"),
            "team": base.get("t"),
            "t": base.get("t"),
            "class": base.get("L"),
            "L": base.get("L"),
            "run0": run0,
            "run1": run1,
            "runSeq": run_seq,
            "runRaw": run_raw,
            "f": final,
            "time": total or None,
            "status": _run_status(run0, run1, run_raw, final),
        }
        # rosterType is a varsity designation, so it is only set when known
        if roster_type is not None:
            row["rosterType"] = roster_type
        rows.append(row)
    return rows
