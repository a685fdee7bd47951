from __future__ import annotations


class ResultReporter:
    def report(self, count: int) -> str:
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValueError(f"Indexed count must be a non-negative integer, got {count!r}")
        if count == 0:
            return "Nothing has been indexed."
        if count == 1:
            return "One record has been indexed."
        return f"{count} records have been indexed."
