"""Host agent metadata enrichment.

The host agent exposes process metadata through an indirection file: a
``.properties`` file in the working directory whose content names the real
metadata file. The metadata file holds ``key=value`` lines that are meant to
be attached to every metric as static attributes.
"""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

logger = logging.getLogger(__name__)

INDIRECTION_BASENAME = "dt_metadata_e617c525669e072eebe3d0f08212e8f2"


def read_indirection_file(source: TextIO | Iterable[str], basename: str) -> str:
    """Return the first stripped line that contains ``basename``, or ``""``."""
    for line in source:
        line = line.strip()
        if basename in line:
            return line
    return ""


def read_metadata_file(source: TextIO | Iterable[str]) -> list[str]:
    """Return the stripped, non-empty lines of a metadata file."""
    return [line.strip() for line in source if line.strip()]


def parse_metadata(lines: Iterable[str]) -> list[tuple[str, str]]:
    """Split ``key=value`` lines on the first ``=``.

    Lines without ``=`` or with an empty key or value are logged and skipped.
    Further ``=`` characters stay part of the value.
    """
    pairs: list[tuple[str, str]] = []
    for line in lines:
        key, sep, value = line.partition("=")
        if not sep or not key or not value:
            logger.warning("Could not parse host agent metadata line %r", line)
            continue
        pairs.append((key, value))
    return pairs


class OneAgentMetadataEnricher:
    """Reads host agent metadata for use as static attributes."""

    def __init__(self, base_dir: Path | str | None = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

    def read_metadata_lines(self) -> list[str]:
        """Follow the indirection file and read the metadata file.

        Raises:
            OSError: If either file cannot be opened or read.
            ValueError: If the indirection file names no metadata file.
        """
        indirection_path = self._base_dir / f"{INDIRECTION_BASENAME}.properties"
        with indirection_path.open(encoding="utf-8") as indirection:
            filename = read_indirection_file(indirection, INDIRECTION_BASENAME)
        if not filename:
            raise ValueError("metadata file name is empty")

        metadata_path = Path(filename)
        if not metadata_path.is_absolute():
            metadata_path = self._base_dir / metadata_path
        with metadata_path.open(encoding="utf-8") as metadata:
            return read_metadata_file(metadata)

    def get_metadata(self) -> list[tuple[str, str]]:
        """Return metadata pairs, or an empty list if none can be read.

        Only whitespace is trimmed; keys are normalized later with all other
        attributes.
        """
        try:
            lines = self.read_metadata_lines()
        except (OSError, ValueError) as exc:
            logger.warning("Could not read host agent metadata: %s", exc)
            return []
        return parse_metadata(lines)
