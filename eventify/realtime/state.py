"""Local copies of table rows kept current from change-feed notifications."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from eventify.realtime.feed import DELETE, INSERT, UPDATE

EVENT_LIVE_FIELDS = ("total_slots", "available_slots")
REGISTRATION_LIVE_FIELDS = ("attended", "certificate_generated", "od_letter_generated")


class LiveTable:
    """Rows of one table indexed by id.

    ``apply`` takes a notification as produced by ``ChangeFeed`` and patches
    the matching row: an UPDATE only overwrites ``live_fields``, every other
    field keeps its loaded value. Notifications for ids that were never
    loaded are ignored; a missed notification leaves the row stale until the
    next ``load``.
    """

    def __init__(self, table: str, live_fields: Iterable[str], records: Iterable[Dict[str, Any]] = ()) -> None:
        self.table = table
        self.live_fields = tuple(live_fields)
        self._rows: Dict[Any, Dict[str, Any]] = {}
        self.load(records)

    def load(self, records: Iterable[Dict[str, Any]]) -> None:
        self._rows = {r["id"]: dict(r) for r in records}

    def apply(self, change: Dict[str, Any]) -> bool:
        """Apply one notification; returns True when a row changed."""

        if change.get("table") != self.table:
            return False
        record = change.get("record") or {}
        row_id = record.get("id")
        if row_id is None:
            return False

        kind = change.get("type")
        if kind == UPDATE:
            row = self._rows.get(row_id)
            if row is None:
                return False
            changed = False
            for field in self.live_fields:
                if field in record and row.get(field) != record[field]:
                    row[field] = record[field]
                    changed = True
            return changed
        if kind == DELETE:
            return self._rows.pop(row_id, None) is not None
        if kind == INSERT:
            if row_id in self._rows:
                return False
            self._rows[row_id] = dict(record)
            return True
        return False

    def get(self, row_id: Any) -> Optional[Dict[str, Any]]:
        row = self._rows.get(row_id)
        return dict(row) if row is not None else None

    def snapshot(self) -> List[Dict[str, Any]]:
        return [dict(row) for row in self._rows.values()]

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, row_id: Any) -> bool:
        return row_id in self._rows


def live_events(records: Iterable[Dict[str, Any]] = ()) -> LiveTable:
    return LiveTable("events", EVENT_LIVE_FIELDS, records)


def live_registrations(records: Iterable[Dict[str, Any]] = ()) -> LiveTable:
    return LiveTable("registrations", REGISTRATION_LIVE_FIELDS, records)
