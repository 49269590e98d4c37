# history.py
"""In-memory list of finished calculations, newest first, capped at a fixed size."""
import time
import uuid

HISTORY_LIMIT = 50


class HistoryEntry:
    def __init__(self, expression, result, entry_id=None, timestamp=None):
        self.id = entry_id or uuid.uuid4().hex[:9]
        self.expression = expression
        self.result = result
        # Milliseconds since epoch
        self.timestamp = timestamp if timestamp is not None else int(time.time() * 1000)

    def __repr__(self):
        return f"HistoryEntry({self.expression!r} = {self.result!r})"


class CalculationHistory:

    def __init__(self, limit=HISTORY_LIMIT):
        if limit < 1:
            raise ValueError(f"History limit must be at least 1, got {limit}")
        self.limit = limit
        self._entries = []

    def add(self, expression, result):
        """Insert a new entry at the front and drop whatever falls past the limit."""
        entry = HistoryEntry(expression, result)
        self._entries.insert(0, entry)
        del self._entries[self.limit:]
        return entry

    def set_limit(self, limit):
        """Change the cap; entries past the new limit are dropped."""
        if limit < 1:
            raise ValueError(f"History limit must be at least 1, got {limit}")
        self.limit = limit
        del self._entries[limit:]

    @property
    def entries(self):
        return list(self._entries)

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))
