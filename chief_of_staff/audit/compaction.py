"""
Interaction log compaction.

A task's Interaction_Log is one sheet cell, so it has a hard ceiling. When an
append would cross it, older lines are dropped, but every Thread ID and
Message ID seen in the log is carried forward: the reply handlers use them
to find the email conversation that belongs to the task.
"""

import re
from dataclasses import dataclass
from typing import Dict, List

from config import settings

CORRELATION_LABELS = ("Thread ID", "Message ID")

_TOKEN_PATTERNS = {
    label: re.compile(rf"{label}:\s*([A-Za-z0-9_-]+)", re.IGNORECASE)
    for label in CORRELATION_LABELS
}

_VERBOSE_UPDATE = re.compile(r"^(?P<stamp>.*?) - Task updated:\s*\{.*$")


@dataclass(frozen=True)
class LogLimits:
    """Size limits for one interaction log cell."""
    max_chars: int = 45000
    keep_lines: int = 150
    emergency_lines: int = 100

    @classmethod
    def from_settings(cls) -> "LogLimits":
        return cls(
            max_chars=settings.interaction_log_max_chars,
            keep_lines=settings.interaction_log_keep_lines,
            emergency_lines=settings.interaction_log_emergency_lines,
        )


@dataclass
class LogWrite:
    """The log text to persist and what had to be done to fit it."""
    text: str
    truncated: bool = False
    emergency: bool = False
    preserved_tokens: int = 0


def extract_correlation_tokens(log: str) -> Dict[str, List[str]]:
    """Unique Thread/Message ID tokens in order of first appearance."""
    tokens: Dict[str, List[str]] = {}
    for label, pattern in _TOKEN_PATTERNS.items():
        seen: List[str] = []
        for match in pattern.finditer(log or ""):
            token = match.group(1).strip()
            if token and token not in seen:
                seen.append(token)
        tokens[label] = seen
    return tokens


def _carry_forward(tokens: Dict[str, List[str]], text: str, timestamp: str) -> List[str]:
    """Preservation lines for every token whose exact value is absent from `text`."""
    present = extract_correlation_tokens(text)
    lines = []
    for label in CORRELATION_LABELS:
        for token in tokens[label]:
            if token not in present[label]:
                lines.append(f"{timestamp} - {label}: {token} [preserved from truncated log]")
    return lines


def _truncate(current: str, timestamp: str, limits: LogLimits) -> LogWrite:
    tokens = extract_correlation_tokens(current)
    kept = current.split("\n")[-limits.keep_lines:]
    text = "\n".join(kept)

    carried = _carry_forward(tokens, text, timestamp)
    if carried:
        text = "\n".join([text] + carried)

    thread_count = len(tokens["Thread ID"])
    message_count = len(tokens["Message ID"])
    text = (
        f"{text}\n{timestamp} - [Log truncated: kept last {len(kept)} entries, "
        f"preserved {thread_count} thread ID(s) and {message_count} message ID(s)]"
    )
    return LogWrite(text=text, truncated=True, preserved_tokens=len(carried))


def build_log(current: str, entry: str, timestamp: str, limits: LogLimits) -> LogWrite:
    """
    Append `entry` to `current` without exceeding `limits.max_chars`.

    Normal path: if the projected size is over the ceiling, keep the last
    `keep_lines` lines, re-add missing correlation tokens and a truncation
    notice. Emergency path: if the result is still too large, keep only the
    last `emergency_lines` lines of the log, re-add the tokens those lines
    lost, then an emergency notice and the entry. If even that is too large
    the old lines go and the entry is cut from the front. The emergency path
    never re-enters the normal one.
    """
    current = current or ""
    result = LogWrite(text=current)

    if len(current) + len(entry) + 1 > limits.max_chars:
        result = _truncate(current, timestamp, limits)

    base = result.text
    text = f"{base}\n{entry}" if base else entry
    if len(text) <= limits.max_chars:
        result.text = text
        return result

    tokens = extract_correlation_tokens(base)
    notice = f"{timestamp} - [Emergency truncation: kept last {limits.emergency_lines} entries]"
    tail = "\n".join(base.split("\n")[-limits.emergency_lines:])
    carried = _carry_forward(tokens, tail, timestamp)
    text = "\n".join([tail] + carried + [notice, entry])

    if len(text) > limits.max_chars:
        # A single oversized entry: keep the tokens and the newest text
        carried = _carry_forward(extract_correlation_tokens(f"{base}\n{entry}"), "", timestamp)
        head = "\n".join(carried + [notice])
        room = limits.max_chars - len(head) - 1
        text = f"{head}\n{entry[-room:]}" if room > 0 else head[-limits.max_chars:]

    result.text = text
    result.emergency = True
    result.preserved_tokens += len(carried)
    return result


def simplify_verbose_entries(log: str) -> str:
    """Collapse `Task updated: {...json...}` lines to `Task updated`."""
    lines = []
    for line in (log or "").split("\n"):
        match = _VERBOSE_UPDATE.match(line)
        lines.append(f"{match.group('stamp')} - Task updated" if match else line)
    return "\n".join(lines)
