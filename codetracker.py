#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Coding Tracker
==============

Single‑file console app that records when coding sessions start and end.

Features
--------
- Add, view, update and delete coding sessions from a numbered menu
- Durations derived from start/end on every read
- Enter 0 at any prompt to go back to the main menu
- Optional demo data seeding
- SQLite persistence in user data folder (or wherever the config points)

Configuration
-------------
An ``appsettings.json`` in the working directory::

    {"ConnectionStrings": {"DefaultConnection": "Data Source=coding.db"}, "SeedRecords": 0}

The environment variables ``CODINGTRACKER_CONNECTION`` and
``CODINGTRACKER_SEED`` override the file.

Usage
-----
python codetracker.py

License: MIT
"""
from __future__ import annotations

import json
import os
import random
import sqlite3
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, date
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, TextIO, Tuple

APP_NAME = "CodingTracker"
DB_NAME = "codingtracker.sqlite3"
SETTINGS_FILE = "appsettings.json"
ENV_CONNECTION = "CODINGTRACKER_CONNECTION"
ENV_SEED = "CODINGTRACKER_SEED"

DATE_FORMAT = "%d-%m-%y %H:%M"
DATE_HINT = "dd-mm-yy hh:mm"
CANCEL = "0"
INT_MIN, INT_MAX = -(2 ** 63), 2 ** 63 - 1

# ----------------------------
# Errors
# ----------------------------

class TrackerError(Exception):
    """Base class for errors raised by the tracker itself."""


class FormatError(TrackerError, ValueError):
    """User input could not be parsed as a date or a number."""


class OrderError(TrackerError, ValueError):
    """End date is before the start date."""


class NotFoundError(TrackerError, LookupError):
    """No record (or more than one) carries the requested Id."""


class StorageError(TrackerError):
    """The database file could not be opened, read or written."""


class ConfigError(TrackerError):
    pass


class Cancelled(Exception):
    """User typed 0 at a prompt."""


# ----------------------------
# Utility helpers
# ----------------------------

def user_data_dir() -> Path:
    """Return a per‑user data directory suitable for the platform."""
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming"
        return Path(base) / APP_NAME
    else:
        # Linux and others
        base = os.environ.get("XDG_DATA_HOME") or (Path.home() / ".local" / "share")
        return Path(base) / APP_NAME


def parse_connection_string(value: str) -> Path:
    """Turn ``Data Source=<path>;...`` (or a bare path) into a file path."""
    value = value.strip()
    if "=" not in value:
        if not value:
            raise ConfigError("Connection string is empty")
        return Path(value)
    for part in value.split(";"):
        key, sep, val = part.partition("=")
        if sep and key.strip().lower() in ("data source", "datasource", "filename") and val.strip():
            return Path(val.strip())
    raise ConfigError(f"No data source in connection string {value!r}")


def format_duration(duration: timedelta) -> str:
    """Render a duration as ``H hours M minutes``.

    Hours wrap at 24, so a 25 hour session shows as ``1 hours 0 minutes``.
    """
    total_minutes = int(duration.total_seconds() // 60)
    return f"{total_minutes // 60 % 24} hours {total_minutes % 60} minutes"


def format_date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


def render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def line(cells: Sequence[str]) -> str:
        return "| " + " | ".join(c.ljust(w) for c, w in zip(cells, widths)) + " |"

    lines = [border, line(headers), border]
    lines.extend(line(r) for r in rows)
    lines.append(border)
    return "\n".join(lines)


# ----------------------------
# Configuration
# ----------------------------

@dataclass(frozen=True)
class Config:
    connection_string: str
    seed_count: int = 0

    @property
    def db_path(self) -> Path:
        return parse_connection_string(self.connection_string)

    @classmethod
    def load(cls, settings_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Build the config from defaults, ``appsettings.json`` and the environment.

        Later sources win. Raises :class:`ConfigError` on unusable values.
        """
        environ = os.environ if environ is None else environ
        settings_path = settings_path or Path.cwd() / SETTINGS_FILE

        connection = f"Data Source={user_data_dir() / DB_NAME}"
        seed: object = 0

        if settings_path.exists():
            try:
                data = json.loads(settings_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as ex:
                raise ConfigError(f"Cannot read {settings_path}: {ex}") from ex
            if not isinstance(data, dict):
                raise ConfigError(f"{settings_path} must hold a JSON object")
            strings = data.get("ConnectionStrings") or {}
            if not isinstance(strings, dict):
                raise ConfigError(f"ConnectionStrings in {settings_path} must be a JSON object")
            connection = strings.get("DefaultConnection", connection)
            seed = data.get("SeedRecords", seed)

        connection = environ.get(ENV_CONNECTION, connection)
        seed = environ.get(ENV_SEED, seed)

        try:
            seed_count = int(seed)  # type: ignore[arg-type]
        except (TypeError, ValueError) as ex:
            raise ConfigError(f"Seed count must be an integer, got {seed!r}") from ex
        if seed_count < 0:
            raise ConfigError(f"Seed count cannot be negative, got {seed_count}")

        if not isinstance(connection, str):
            raise ConfigError(f"Connection string must be text, got {connection!r}")
        parse_connection_string(connection)
        return cls(connection_string=connection, seed_count=seed_count)


# ----------------------------
# Validation
# ----------------------------

def parse_date(text: str) -> datetime:
    try:
        return datetime.strptime(text.strip(), DATE_FORMAT)
    except ValueError as ex:
        raise FormatError(f"'{text}' is not a valid date. Please use the format {DATE_HINT}.") from ex


def validate_start_date(text: str) -> datetime:
    return parse_date(text)


def validate_end_date(start: datetime, text: str) -> datetime:
    end = parse_date(text)
    if end < start:
        raise OrderError(f"End date {format_date(end)} is before the start date {format_date(start)}.")
    return end


def validate_int(text: str) -> int:
    """Parse plain ASCII digits with an optional leading minus sign."""
    value = text.strip()
    digits = value[1:] if value.startswith("-") else value
    if not (digits.isascii() and digits.isdecimal()):
        raise FormatError(f"'{text}' is not a valid number.")
    number = int(value)
    # SQLite integers are signed 64-bit
    if not INT_MIN <= number <= INT_MAX:
        raise FormatError(f"'{text}' is out of range.")
    return number


# ----------------------------
# Data layer
# ----------------------------

@dataclass
class CodingRecord:
    date_start: datetime
    date_end: datetime
    id: Optional[int] = None

    @property
    def duration(self) -> timedelta:
        return self.date_end - self.date_start


def _to_db(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def _from_db(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError) as ex:
        raise StorageError(f"Unreadable date {value!r} in database") from ex


class Store:
    """Access to the ``records`` table.

    Each operation opens its own connection and closes it before returning.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path)
        except (OSError, sqlite3.Error) as ex:
            raise StorageError(f"Cannot open database {self.path}: {ex}") from ex
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        except sqlite3.Error as ex:
            raise StorageError(f"Database error in {self.path}: {ex}") from ex
        finally:
            conn.close()

    def create_database(self) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS records(
                    Id INTEGER PRIMARY KEY AUTOINCREMENT,
                    DateStart TEXT NOT NULL,
                    DateEnd TEXT NOT NULL
                );
                """
            )

    def insert_record(self, record: CodingRecord) -> None:
        # Id is always assigned by the database
        with self._connection() as conn:
            conn.execute(
                "INSERT INTO records(DateStart, DateEnd) VALUES(?,?)",
                (_to_db(record.date_start), _to_db(record.date_end)),
            )

    def bulk_insert_records(self, records: Iterable[CodingRecord]) -> None:
        rows = [(_to_db(r.date_start), _to_db(r.date_end)) for r in records]
        with self._connection() as conn:
            conn.executemany("INSERT INTO records(DateStart, DateEnd) VALUES(?,?)", rows)

    def get_all_records(self) -> List[CodingRecord]:
        with self._connection() as conn:
            rows = conn.execute("SELECT Id, DateStart, DateEnd FROM records").fetchall()
        return [
            CodingRecord(id=int(r["Id"]), date_start=_from_db(r["DateStart"]), date_end=_from_db(r["DateEnd"]))
            for r in rows
        ]

    def update_record(self, record: CodingRecord) -> None:
        if record.id is None:
            raise ValueError("Cannot update a record that has no Id")
        with self._connection() as conn:
            conn.execute(
                "UPDATE records SET DateStart=?, DateEnd=? WHERE Id=?",
                (_to_db(record.date_start), _to_db(record.date_end), record.id),
            )

    def delete_record(self, record_id: int) -> int:
        """Delete by Id and return the number of rows removed (0 or 1)."""
        with self._connection() as conn:
            cur = conn.execute("DELETE FROM records WHERE Id=?", (record_id,))
            return cur.rowcount


def find_record(records: Iterable[CodingRecord], record_id: int) -> CodingRecord:
    matches = [r for r in records if r.id == record_id]
    if not matches:
        raise NotFoundError(f"Record with the id {record_id} doesn't exist.")
    if len(matches) > 1:
        raise NotFoundError(f"Id {record_id} matches {len(matches)} records.")
    return matches[0]


# ----------------------------
# Seed data
# ----------------------------

def seed_records(
    store: Store,
    count: int,
    start: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> List[CodingRecord]:
    """Write ``count`` demo records, one per day starting at ``start`` (default today).

    Start and end hours are drawn from 0..12 and swapped when out of order, so
    a record can have zero duration. Ids come from the database.
    """
    if count < 0:
        raise ValueError(f"count cannot be negative, got {count}")
    rng = rng or random.Random()
    day = datetime.combine(start or date.today(), datetime.min.time())

    records: List[CodingRecord] = []
    for _ in range(count):
        date_start = day + timedelta(hours=rng.randint(0, 12))
        date_end = day + timedelta(hours=rng.randint(0, 12))
        if date_start > date_end:
            date_start, date_end = date_end, date_start
        records.append(CodingRecord(date_start=date_start, date_end=date_end))
        day += timedelta(days=1)

    store.bulk_insert_records(records)
    return records


# ----------------------------
# Console layer
# ----------------------------

class MenuChoice(Enum):
    ADD_RECORD = "add"
    VIEW_RECORDS = "view"
    UPDATE_RECORD = "update"
    DELETE_RECORD = "delete"
    QUIT = "quit"


MENU_LABELS: Dict[MenuChoice, str] = {
    MenuChoice.ADD_RECORD: "Add Record",
    MenuChoice.VIEW_RECORDS: "View Records",
    MenuChoice.UPDATE_RECORD: "Update Record",
    MenuChoice.DELETE_RECORD: "Delete Record",
    MenuChoice.QUIT: "Quit",
}

TABLE_HEADERS = ("Id", "Start Date", "End Date", "Duration")


class ConsoleApp:
    def __init__(self, store: Store, ask: Callable[[str], str] = input, out: Optional[TextIO] = None):
        self.store = store
        self.ask = ask
        self.out = out or sys.stdout

    def say(self, text: str = "") -> None:
        print(text, file=self.out)

    # --- prompts ---
    def _prompt(self, message: str) -> str:
        text = self.ask(message).strip()
        if text == CANCEL:
            raise Cancelled()
        return text

    def ask_start_date(self) -> datetime:
        message = f"Input Start Date with the format: {DATE_HINT} (24 hour clock). Or enter 0 to return to main menu.\n> "
        while True:
            try:
                return validate_start_date(self._prompt(message))
            except FormatError as ex:
                self.say(str(ex))

    def ask_end_date(self, start: datetime) -> datetime:
        message = f"Input End Date with the format: {DATE_HINT} (24 hour clock). Or enter 0 to return to main menu.\n> "
        while True:
            try:
                return validate_end_date(start, self._prompt(message))
            except (FormatError, OrderError) as ex:
                self.say(str(ex))

    def ask_dates(self) -> Tuple[datetime, datetime]:
        start = self.ask_start_date()
        return start, self.ask_end_date(start)

    def ask_number(self, message: str) -> int:
        while True:
            try:
                return validate_int(self._prompt(message))
            except FormatError as ex:
                self.say(str(ex))

    def confirm(self, message: str) -> bool:
        while True:
            answer = self.ask(f"{message} [y/n] ").strip().lower()
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            self.say("Please answer y or n.")

    def choose(self) -> MenuChoice:
        choices = list(MenuChoice)
        self.say("\nWhat would you like to do?")
        for i, choice in enumerate(choices, start=1):
            self.say(f"  {i}. {MENU_LABELS[choice]}")
        while True:
            text = self.ask("> ").strip()
            for i, choice in enumerate(choices, start=1):
                if text == str(i) or text.lower() == MENU_LABELS[choice].lower():
                    return choice
            self.say(f"Please pick a number between 1 and {len(choices)}.")

    # --- actions ---
    def add_record(self) -> None:
        date_start, date_end = self.ask_dates()
        self.store.insert_record(CodingRecord(date_start=date_start, date_end=date_end))
        self.say("Record added.")

    def view_records(self) -> List[CodingRecord]:
        records = self.store.get_all_records()
        rows = [
            (str(r.id), format_date(r.date_start), format_date(r.date_end), format_duration(r.duration))
            for r in records
        ]
        self.say(render_table(TABLE_HEADERS, rows))
        if not records:
            self.say("No records found.")
        return records

    def update_record(self) -> None:
        records = self.view_records()
        record_id = self.ask_number("\nPlease type the id of the record you want to update: ")
        record = find_record(records, record_id)
        record.date_start, record.date_end = self.ask_dates()
        self.store.update_record(record)
        self.say("Record updated.")

    def delete_record(self) -> None:
        self.view_records()
        record_id = self.ask_number("\nPlease type the id of the record you want to delete: ")
        if not self.confirm("\nAre you sure?"):
            self.say("Nothing was deleted.")
            return
        if self.store.delete_record(record_id) < 1:
            self.say(f"\nRecord with the id {record_id} doesn't exist.")
        else:
            self.say("\nRecord deleted successfully.")

    def run(self) -> None:
        """Show the menu until the user picks Quit. StorageError propagates."""
        handlers: Dict[MenuChoice, Callable[[], object]] = {
            MenuChoice.ADD_RECORD: self.add_record,
            MenuChoice.VIEW_RECORDS: self.view_records,
            MenuChoice.UPDATE_RECORD: self.update_record,
            MenuChoice.DELETE_RECORD: self.delete_record,
        }
        while True:
            choice = self.choose()
            if choice is MenuChoice.QUIT:
                self.say("\nGoodbye")
                return
            try:
                handlers[choice]()
            except Cancelled:
                self.say("Returning to main menu.")
            except NotFoundError as ex:
                self.say(f"{ex} Returning to main menu.")


# ----------------------------
# Entry point
# ----------------------------

def main() -> int:
    try:
        config = Config.load()
    except ConfigError as ex:
        print(f"Configuration error: {ex}", file=sys.stderr)
        return 2

    print(config.connection_string)
    store = Store(config.db_path)
    app = ConsoleApp(store)
    try:
        store.create_database()
        if config.seed_count:
            seed_records(store, config.seed_count)
        app.run()
    except StorageError as ex:
        print(f"Storage error: {ex}", file=sys.stderr)
        return 1
    except (EOFError, KeyboardInterrupt):
        print("\nGoodbye")
    return 0


if __name__ == "__main__":
    sys.exit(main())
