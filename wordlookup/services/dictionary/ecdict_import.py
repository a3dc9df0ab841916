"""Build the ECDICT SQLite store from the ECDICT CSV release."""

import csv
import logging
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

logger = logging.getLogger(__name__)

BATCH_SIZE = 5000

CSV_COLUMNS = (
    "word",
    "phonetic",
    "definition",
    "translation",
    "pos",
    "collins",
    "oxford",
    "tag",
    "bnc",
    "frq",
    "exchange",
    "detail",
    "audio",
)

CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS "stardict" (
    "id" INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL UNIQUE,
    "word" VARCHAR(64) COLLATE NOCASE NOT NULL UNIQUE,
    "sw" VARCHAR(64) COLLATE NOCASE NOT NULL,
    "phonetic" VARCHAR(64),
    "definition" TEXT,
    "translation" TEXT,
    "pos" VARCHAR(16),
    "collins" INTEGER DEFAULT(0),
    "oxford" INTEGER DEFAULT(0),
    "tag" VARCHAR(64),
    "bnc" INTEGER DEFAULT(NULL),
    "frq" INTEGER DEFAULT(NULL),
    "exchange" TEXT,
    "detail" TEXT,
    "audio" TEXT
)
"""

CREATE_INDEXES = (
    'CREATE INDEX IF NOT EXISTS "stardict_3" ON stardict (sw, word COLLATE NOCASE)',
    'CREATE INDEX IF NOT EXISTS "sd_1" ON stardict (word COLLATE NOCASE)',
)

INSERT = text(
    "INSERT OR IGNORE INTO stardict "
    "(word, sw, phonetic, definition, translation, pos, collins, oxford, tag, bnc, frq, "
    "exchange, detail, audio) "
    "VALUES (:word, :sw, :phonetic, :definition, :translation, :pos, :collins, :oxford, "
    ":tag, :bnc, :frq, :exchange, :detail, :audio)"
)

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
_ESCAPES = {"n": "\n", "r": "\r", "\\": "\\"}


@dataclass
class ImportStats:
    lines: int = 0
    inserted: int = 0
    skipped: int = 0


def strip_word(word: str) -> str:
    """Alphanumeric-only lowercase form, stored in the `sw` column."""
    return _NON_ALNUM.sub("", word).lower()


def decode_csv_value(value: str | None) -> str | None:
    """Decode the backslash escapes ECDICT uses inside CSV fields (\\n, \\r, \\\\)."""
    if not value:
        return None

    result = []
    i = 0
    while i < len(value):
        char = value[i]
        if char == "\\" and i + 1 < len(value) and value[i + 1] in _ESCAPES:
            result.append(_ESCAPES[value[i + 1]])
            i += 2
            continue
        result.append(char)
        i += 1
    return "".join(result)


def _safe_int(value: str | None) -> int | None:
    if not value or not value.strip():
        return None
    try:
        return int(value)
    except ValueError:
        return None


def build_record(fields: list[str]) -> dict[str, Any]:
    """Map one CSV row to stardict column values."""
    padded = fields + [""] * (len(CSV_COLUMNS) - len(fields))
    row = dict(zip(CSV_COLUMNS, padded))
    word = row["word"]
    return {
        "word": word,
        "sw": strip_word(word),
        "phonetic": decode_csv_value(row["phonetic"]),
        "definition": decode_csv_value(row["definition"]),
        "translation": decode_csv_value(row["translation"]),
        "pos": row["pos"] or None,
        "collins": _safe_int(row["collins"]) or 0,
        "oxford": _safe_int(row["oxford"]) or 0,
        "tag": row["tag"] or None,
        "bnc": _safe_int(row["bnc"]),
        "frq": _safe_int(row["frq"]),
        "exchange": row["exchange"] or None,
        "detail": row["detail"] or None,
        "audio": row["audio"] or None,
    }


def iter_records(csv_path: Path, stats: ImportStats) -> Iterator[dict[str, Any]]:
    """Yield unique records from the CSV, skipping the header, blanks and duplicates."""
    seen: set[str] = set()
    with csv_path.open(encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        next(reader, None)
        for fields in reader:
            stats.lines += 1
            if not fields or not fields[0]:
                stats.skipped += 1
                continue

            key = fields[0].lower()
            if key in seen:
                stats.skipped += 1
                continue
            seen.add(key)
            yield build_record(fields)


def count_rows(csv_path: Path) -> int:
    """Physical line count minus the header; used to size progress bars."""
    with csv_path.open(encoding="utf-8") as f:
        return max(sum(1 for _ in f) - 1, 0)


async def import_ecdict(
    csv_path: Path,
    db_path: Path,
    on_batch: Callable[[int], None] | None = None,
    batch_size: int = BATCH_SIZE,
) -> ImportStats:
    """
    Create a fresh stardict database at db_path from csv_path.

    An existing database file is replaced. `on_batch` is called with the
    number of records written after every batch.
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    db_path.parent.mkdir(parents=True, exist_ok=True)
    if db_path.exists():
        db_path.unlink()
        logger.info(f"Removed existing database: {db_path}")

    stats = ImportStats()
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", echo=False)
    try:
        async with engine.begin() as conn:
            await conn.execute(text(CREATE_TABLE))

        batch: list[dict[str, Any]] = []
        for record in iter_records(csv_path, stats):
            batch.append(record)
            if len(batch) >= batch_size:
                await _write_batch(engine, batch)
                stats.inserted += len(batch)
                if on_batch is not None:
                    on_batch(len(batch))
                batch = []

        if batch:
            await _write_batch(engine, batch)
            stats.inserted += len(batch)
            if on_batch is not None:
                on_batch(len(batch))

        async with engine.begin() as conn:
            for statement in CREATE_INDEXES:
                await conn.execute(text(statement))
            await conn.execute(text("ANALYZE"))
    finally:
        await engine.dispose()

    logger.info(
        f"ECDICT import complete lines={stats.lines} inserted={stats.inserted} "
        f"skipped={stats.skipped}"
    )
    return stats


async def _write_batch(engine: AsyncEngine, batch: list[dict[str, Any]]) -> None:
    async with engine.begin() as conn:
        await conn.execute(INSERT, batch)
