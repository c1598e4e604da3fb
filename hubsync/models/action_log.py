"""
Structured action log

Every import/export run records what it did as a list of comments and
actions (EVENT-CREATE <id>, SNAPSHOT-CREATE <id>, ...) and ends with a
result line. The same messages go to the logging module for the console.
"""

import logging
import time
from enum import IntEnum
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class LogErrorLevel(IntEnum):
    """Worst problem seen during a run"""
    NONE = 0
    WARNING = 1
    ERROR = 2


class ActionLogItem(BaseModel):
    """Single log line"""
    comment: bool
    action: Optional[str] = None
    data: str = ""


def get_default_log_path(type: str, action: str) -> str:
    """Default log file for a command, e.g. event-import-<DATE>.log"""
    return str(Path.home() / ".hubsync" / "logs" / f"{type}-{action}-<DATE>.log")


class ActionLog:
    """In-memory action log"""

    def __init__(self, title: Optional[str] = None):
        self.title = title
        self.items: List[ActionLogItem] = []
        self.error_level = LogErrorLevel.NONE

    def add_comment(self, comment: str) -> None:
        for line in comment.split("\n"):
            self.items.append(ActionLogItem(comment=True, data=line))

    def add_action(self, action: str, data: str) -> None:
        self.items.append(ActionLogItem(comment=False, action=action, data=data))

    def append_line(self, text: str, silent: bool = False) -> None:
        """Comment that is also echoed to the console"""
        if silent:
            logger.debug(text)
        else:
            logger.info(text)

        self.add_comment(text)

    def add_error(self, level: LogErrorLevel, message: str, error: Optional[BaseException] = None) -> None:
        if level > self.error_level:
            self.error_level = level

        self.add_action(level.name, "")
        self.add_comment(f"{level.name}: {message}")

        log_level = logging.ERROR if level == LogErrorLevel.ERROR else logging.WARNING
        logger.log(log_level, message)

        if error is not None:
            self.add_comment(str(error))
            logger.log(log_level, str(error))

    def warn(self, message: str, error: Optional[BaseException] = None) -> None:
        self.add_error(LogErrorLevel.WARNING, message, error)

    def error(self, message: str, error: Optional[BaseException] = None) -> None:
        self.add_error(LogErrorLevel.ERROR, message, error)

    def get_data(self, action: str) -> List[str]:
        """Data of every action of the given kind"""
        return [item.data for item in self.items if not item.comment and item.action == action]

    def result_code(self) -> str:
        if self.error_level == LogErrorLevel.NONE:
            return "SUCCESS"
        if self.error_level == LogErrorLevel.ERROR:
            return "FAILURE"
        return self.error_level.name

    @staticmethod
    def parse_result_code(code: str) -> LogErrorLevel:
        if code == "FAILURE":
            return LogErrorLevel.ERROR
        return LogErrorLevel.__members__.get(code, LogErrorLevel.NONE)

    def render(self) -> str:
        lines = [f"// {self.title}"]
        for item in self.items:
            if item.comment:
                lines.append(f"// {item.data}")
            else:
                lines.append(f"{item.action} {item.data}")

        lines.append(self.result_code())
        return "\n".join(lines)

    def write_to_file(self, path: Union[str, Path]) -> bool:
        """Write the log. Never raises: a log that cannot be written must not fail the run."""
        try:
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.render(), encoding="utf-8")
            logger.info(f'Log written to "{path}".')
            return True
        except OSError as e:
            logger.warning(f"Could not write log: {e}")
            return False

    def load_from_file(self, path: Union[str, Path]) -> "ActionLog":
        lines = Path(path).read_text(encoding="utf-8").split("\n")
        self.items = []

        for index, line in enumerate(lines):
            if line.startswith("//"):
                # The first comment is the title
                message = line[2:].lstrip()
                if self.title is None:
                    self.title = message
                else:
                    self.add_comment(message)
                continue

            if index == len(lines) - 1:
                self.error_level = self.parse_result_code(line)
            else:
                parts = line.split(" ")
                if len(parts) >= 2:
                    self.add_action(parts[0], " ".join(parts[1:]))

        return self


class FileLog(ActionLog):
    """Action log bound to a file, written once on close()"""

    def __init__(self, filename: Optional[str] = None, title: Optional[str] = None):
        timestamp = str(int(time.time() * 1000))
        self.filename = filename.replace("<DATE>", timestamp) if filename else None
        super().__init__(title or self.filename)
        self.closed = False

    def open(self) -> "FileLog":
        self.closed = False
        return self

    def close(self) -> None:
        if self.closed:
            return

        if self.filename is not None:
            self.write_to_file(self.filename)

        self.closed = True
