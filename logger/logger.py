import json
import os
from datetime import datetime, timezone


class JSONLogger:
    def __init__(self, output_directory="logs/", log_file_prefix="turing_"):
        self.output_directory = output_directory
        self.log_file_prefix = log_file_prefix
        os.makedirs(self.output_directory, exist_ok=True)
        self.today = self._today()
        self.current_log = self._get_log_filename()

    @staticmethod
    def _today():
        return datetime.now(timezone.utc).strftime("%Y-%m-%d")

    @staticmethod
    def _timestamp():
        return datetime.now(timezone.utc).isoformat()

    def _get_log_filename(self):
        filename = f"{self.log_file_prefix}{self.today}.jsonl"  # JSON lines format
        return os.path.join(self.output_directory, filename)

    def _log_to_file(self, filename, entries):
        path = os.path.join(self.output_directory, filename)
        with open(path, "a", encoding="utf-8") as f:
            for entry in entries:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")

    def log(self, entry: dict):
        """Log a single entry to the main execution log."""
        with open(self.current_log, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")

    def log_batch(self, entries: list):
        """Log a batch of entries to the main execution log."""
        with open(self.current_log, "a", encoding="utf-8") as f:
            for entry in entries:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")

    def log_session(self, event, **fields):
        """Log an engine session event (load, reset, seek, edit, run, pause)."""
        # One main log file per UTC day
        if self._today() != self.today:
            self.rotate()
        entry = {"time": self._timestamp(), "event": event}
        entry.update(fields)
        self.log(entry)

    def rotate(self):
        """Start a new main log file if the UTC date changed."""
        self.today = self._today()
        self.current_log = self._get_log_filename()

    def log_halting(self, entries: list):
        """Log results for programs that halted."""
        filename = f"halting_{self.today}.jsonl"
        self._log_to_file(filename, entries)

    def log_non_halting(self, entries: list):
        """Log results for programs that hit the step limit."""
        filename = f"non_halting_{self.today}.jsonl"
        self._log_to_file(filename, entries)
