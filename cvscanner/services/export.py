import csv
import unicodedata
from pathlib import PurePath
from typing import Iterable, Optional
from urllib.parse import quote

import pandas as pd

from cvscanner.models.models import ExtractedField

CSV_HEADER = "Section,Field,Value"
DEFAULT_CSV_NAME = "cv_data.csv"


def rows_to_csv(rows: Iterable[ExtractedField]) -> str:
    """Header line, then one fully quoted line per row ("\\n" separated, no trailing newline)"""
    df = pd.DataFrame(
        [(r.section, r.field, r.value) for r in rows],
        columns=["Section", "Field", "Value"],
    )
    if not len(df):
        return CSV_HEADER
    body = df.to_csv(index=False, header=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    if body.endswith("\n"):
        body = body[:-1]
    return f"{CSV_HEADER}\n{body}"


def csv_filename_for(source_name: Optional[str]) -> str:
    """cv.pdf -> cv_data.csv; no usable name -> cv_data.csv"""
    if not source_name:
        return DEFAULT_CSV_NAME
    # Drop any client-side directory and characters that break the header
    name = PurePath(source_name.replace("\\", "/")).name.replace('"', "").strip()
    stem = name[:-4] if name.lower().endswith(".pdf") else PurePath(name).stem
    if not stem:
        return DEFAULT_CSV_NAME
    return f"{stem}_data.csv"


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII filename plus an RFC 5987 filename* for the real name.

    Header values must be Latin-1, so a name like 简历_data.csv only survives
    in the percent-encoded filename* parameter.
    """
    ascii_name = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    ascii_name = "".join(c for c in ascii_name if c.isprintable() and c not in '"\\').strip()
    if not ascii_name or ascii_name.startswith("_"):
        ascii_name = DEFAULT_CSV_NAME
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename, safe='')}"
