"""
Parser for brokerage "asset balance" statement CSVs (資産残高).

The export is not a plain table: a summary block comes first, the holdings
live under a ``保有商品詳細`` section line followed by its own header row, and
further ``■``-prefixed sections trail after it. Files arrive as UTF-8 (with or
without BOM) or as one of the Japanese legacy encodings, depending on how
they were saved.
"""

import re
from typing import Optional

from asset_palette.core.exceptions import DecodeFailure, FormatError
from asset_palette.core.logging_config import get_logger
from asset_palette.models.portfolio import Holding

logger = get_logger(__name__)

SECTION_MARKER = "保有商品詳細"
SECTION_BREAK = "■"
BOM = "\ufeff"

# Most specific first: the legacy codecs will happily decode UTF-8 bytes into
# mojibake, so only the marker check decides which candidate is right.
# cp932 is the Windows superset browsers use for "shift_jis".
CANDIDATE_ENCODINGS = ("utf-8", "cp932", "euc_jp")

# Accepted header names per logical column, first match wins
HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "type": ("種別",),
    "name": ("銘柄名", "銘柄"),
    "account": ("口座",),
    "value": ("評価額", "時価評価額[円]"),
    "gain_loss": ("評価損益[円]",),
}

_LINE_BREAK = re.compile(r"\r\n|\n")
_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)")


def _try_decode(content: bytes, encoding: str) -> Optional[str]:
    try:
        return content.decode(encoding)
    except UnicodeDecodeError:
        return None


def decode_statement(content: bytes) -> str:
    """Decode raw statement bytes, picking the encoding that yields the holdings section."""
    for encoding in CANDIDATE_ENCODINGS:
        text = _try_decode(content, encoding)
        if text is not None and SECTION_MARKER in text:
            logger.info("Statement decoded", extra={"encoding": encoding})
            return text[1:] if text.startswith(BOM) else text

    raise DecodeFailure(
        f"Section '{SECTION_MARKER}' not found. "
        "Make sure the file is an asset balance CSV downloaded from the brokerage."
    )


def parse_csv_line(line: str) -> list[str]:
    """
    Split one line into fields.

    A double quote opens a quoted run anywhere in a field; inside it commas
    are literal and ``""`` is one quote. An unterminated quote runs to the end
    of the line. Every other character, a stray CR included, is kept as is.
    """
    fields = []
    field = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]
        if in_quotes:
            if char == '"':
                if i + 1 < len(line) and line[i + 1] == '"':
                    field.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                field.append(char)
        elif char == '"':
            in_quotes = True
        elif char == ",":
            fields.append("".join(field))
            field = []
        else:
            field.append(char)
        i += 1

    fields.append("".join(field))
    return fields


def extract_section(text: str) -> tuple[str, list[tuple[int, str]]]:
    """
    Locate the holdings section.

    Returns:
        The header line and the section's data lines, each paired with its
        index among the non-blank lines of the document.
    """
    lines = [line for line in _LINE_BREAK.split(text) if line.strip()]

    start = next((i for i, line in enumerate(lines) if SECTION_MARKER in line), None)
    if start is None:
        raise FormatError(f"Section '{SECTION_MARKER}' was lost while parsing. The file layout may have changed.")

    if start + 1 >= len(lines):
        raise FormatError("Header row not found.")

    data_lines = []
    for i in range(start + 2, len(lines)):
        if lines[i].startswith(SECTION_BREAK):
            break
        data_lines.append((i, lines[i]))

    return lines[start + 1], data_lines


def resolve_headers(headers: list[str]) -> dict[str, int]:
    """
    Map each logical column to its index in ``headers``.

    Raises:
        FormatError: naming every column that could not be found.
    """
    columns = {}
    missing = []
    for field_name, aliases in HEADER_ALIASES.items():
        index = next((headers.index(alias) for alias in aliases if alias in headers), -1)
        if index == -1:
            missing.append("/".join(aliases))
        columns[field_name] = index

    if missing:
        raise FormatError(f"Required columns not found: {', '.join(missing)}")

    return columns


def parse_amount(raw: str) -> Optional[int]:
    """Parse a yen amount such as ``"1,234,567"`` or ``"-12,000"``; None when unparsable."""
    # A blank cell counts as zero, a dash or text does not
    match = _LEADING_INT.match((raw or "0").replace(",", ""))
    if match is None:
        return None
    return int(match.group(1))


def build_holdings(data_lines: list[tuple[int, str]], columns: dict[str, int], source: str) -> list[Holding]:
    """Turn section lines into holdings, skipping rows that are short, blank or non-numeric."""
    min_width = max(columns.values()) + 1
    holdings = []

    for line_index, line in data_lines:
        fields = [f.strip() for f in parse_csv_line(line)]
        if len(fields) < min_width:
            logger.debug("Skipping short row", extra={"source": source, "line": line_index})
            continue

        value = parse_amount(fields[columns["value"]])
        gain_loss = parse_amount(fields[columns["gain_loss"]])
        asset_type = fields[columns["type"]]
        name = fields[columns["name"]]
        account = fields[columns["account"]]

        if value is None or gain_loss is None or not (asset_type and name and account):
            logger.debug("Skipping invalid row", extra={"source": source, "line": line_index})
            continue

        holdings.append(Holding(
            id=f"csv_{source}_{line_index}",
            type=asset_type,
            name=name,
            account=account,
            value=value,
            gain_loss=gain_loss,
        ))

    return holdings


def parse_statement(content: bytes, source: str) -> list[Holding]:
    """
    Parse an asset balance statement into raw holdings.

    Args:
        content: The file's bytes, in any supported encoding.
        source: File name; ids are ``csv_{source}_{line}`` and stay stable
                for as long as this parse result is in use.

    Raises:
        DecodeFailure: no encoding produced the holdings section.
        FormatError: the section, its header row or required columns are missing.
    """
    text = decode_statement(content)
    header_line, data_lines = extract_section(text)
    columns = resolve_headers([h.strip() for h in parse_csv_line(header_line)])
    holdings = build_holdings(data_lines, columns, source)

    logger.info(
        "Statement parsed",
        extra={"source": source, "rows": len(data_lines), "holdings": len(holdings)},
    )
    return holdings
