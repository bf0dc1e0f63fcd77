from __future__ import annotations

from typing import Dict, List

BOM = "\ufeff"


def tokenize(line: str) -> List[str]:
    """
    Split one CSV line on commas outside double quotes.

    A doubled quote inside a quoted span becomes a single quote character.
    Fields are trimmed after splitting. An unterminated quote swallows the
    rest of the line as literal text; nothing here raises.
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if in_quotes:
            if ch == '"':
                if i + 1 < n and line[i + 1] == '"':
                    current.append('"')
                    i += 2
                    continue
                in_quotes = False
            else:
                current.append(ch)
        elif ch == '"':
            in_quotes = True
        elif ch == ",":
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1
    fields.append("".join(current).strip())
    return fields


def split_lines(text: str) -> List[str]:
    """Non-blank lines, CRLF tolerant, leading BOM removed."""
    if text.startswith(BOM):
        text = text[len(BOM):]
    return [line for line in text.splitlines() if line.strip()]


def normalize_header(name: str) -> str:
    return " ".join(name.replace(BOM, "").split())


def parse_records(text: str) -> List[Dict[str, str]]:
    """Header row + data rows -> list of {header: field}. Short rows are padded with ""."""
    lines = split_lines(text)
    if len(lines) < 2:
        return []
    headers = [normalize_header(h) for h in tokenize(lines[0])]
    records: List[Dict[str, str]] = []
    for line in lines[1:]:
        values = tokenize(line)
        row: Dict[str, str] = {}
        for idx, header in enumerate(headers):
            if not header or header in row:
                continue
            row[header] = values[idx] if idx < len(values) else ""
        records.append(row)
    return records
