"""TLE parsing into orbital element sets.

Reads standard NORAD Two-Line Element sets (bare 2-line or named 3-line
format) and translates each one into an :class:`OrbitalElements`. This is
the element-source side of the engine: the propagators never see raw text.

References:
    - Kelso, T.S. "CelesTrak TLE Format Documentation"
      https://celestrak.org/columns/v04n03/
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional

from .elements import OrbitalElements

logger = logging.getLogger(__name__)


def parse_tle(
    line1: str,
    line2: str,
    name: Optional[str] = None,
) -> OrbitalElements:
    """Parse an element set from TLE line 1 and line 2.

    Args:
        line1: TLE line 1 (69 characters, starts with '1').
        line2: TLE line 2 (69 characters, starts with '2').
        name: Optional satellite name (from line 0).

    Returns:
        Parsed element set. The epoch is kept in its packed
        ``YYDDD.DDDDDDDD`` form.

    Raises:
        ValueError: If line format is invalid or catalog numbers don't match.
    """
    l1 = line1.ljust(69)
    l2 = line2.ljust(69)

    if l1[0] != "1":
        raise ValueError(f"Line 1 must start with '1', got '{l1[0]}'")
    if l2[0] != "2":
        raise ValueError(f"Line 2 must start with '2', got '{l2[0]}'")

    for number, line in ((1, l1), (2, l2)):
        if line[68].isdigit() and _checksum(line) != int(line[68]):
            logger.warning(
                "Checksum mismatch on line %d of #%s: expected %s, computed %d",
                number, line[2:7].strip(), line[68], _checksum(line),
            )

    try:
        # ── Line 1 ──
        catnum = int(l1[2:7].strip())
        intl_designator = l1[9:17].strip()
        epoch = float(l1[18:32].strip())
        mean_motion_dot = float(l1[33:43].strip())
        mean_motion_ddot = _exp_field(l1[44:52])
        bstar = _exp_field(l1[53:61])

        # ── Line 2 ──
        catnum_2 = int(l2[2:7].strip())
        inclination = float(l2[8:16].strip())
        raan = float(l2[17:25].strip())
        eccentricity = float(f"0.{l2[26:33].strip()}")
        arg_perigee = float(l2[34:42].strip())
        mean_anomaly = float(l2[42:51].strip())
        mean_motion = float(l2[52:63].strip())
        rev_number = int(l2[63:68].strip() or "0")
    except ValueError as exc:
        raise ValueError(f"Malformed TLE field: {exc}") from exc

    if catnum != catnum_2:
        raise ValueError(f"Catalog number mismatch: {catnum} vs {catnum_2}")

    return OrbitalElements(
        name=name.strip() if name else f"NORAD {catnum}",
        catalog_number=catnum,
        epoch=epoch,
        mean_motion=mean_motion,
        eccentricity=eccentricity,
        inclination=inclination,
        raan=raan,
        arg_perigee=arg_perigee,
        mean_anomaly=mean_anomaly,
        bstar=bstar,
        mean_motion_dot=mean_motion_dot,
        mean_motion_ddot=mean_motion_ddot,
        intl_designator=intl_designator,
        rev_number=rev_number,
    )


def iter_tle_records(text: str) -> Iterator[tuple[Optional[str], str, str]]:
    """Yield ``(name, line1, line2)`` for every element set in ``text``.

    A line directly before a line-1/line-2 pair is taken as its name;
    ``name`` is ``None`` for bare 2-line sets. Other lines are skipped.
    """
    pending: Optional[str] = None
    line1: Optional[str] = None
    for raw in text.splitlines():
        line = raw.rstrip()
        if not line.strip():
            continue
        if line1 is not None and line.startswith("2 "):
            yield pending, line1, line
            pending = line1 = None
        elif line.startswith("1 "):
            if line1 is not None:
                logger.debug("Line 1 without line 2: %r", line1)
            line1 = line
        else:
            if line1 is not None:
                logger.debug("Line 1 without line 2: %r", line1)
                line1 = None
            if pending is not None:
                logger.debug("Skipping unrecognised TLE line: %r", pending)
            pending = line.strip()


def parse_tle_batch(text: str) -> list[OrbitalElements]:
    """Parse every 2-line or 3-line element set in ``text``, in order."""
    return [parse_tle(line1, line2, name=name) for name, line1, line2 in iter_tle_records(text)]


def load_tle_file(filepath: str | Path) -> list[OrbitalElements]:
    """Load element sets from a local file (2-line or 3-line format)."""
    text = Path(filepath).read_text()
    elements = parse_tle_batch(text)
    logger.info("Loaded %d element sets from %s", len(elements), filepath)
    return elements


# ── Private helpers ──


def _exp_field(field: str) -> float:
    """Decode a ``±MMMMM±E`` field: mantissa after an assumed ``0.``, power of ten.

    ``" 10270-3"`` is 0.10270e-3 and ``"-11606-4"`` is -0.11606e-4.
    """
    text = field.replace(" ", "")
    if not text:
        return 0.0
    sign = "-" if text[0] == "-" else ""
    text = text.lstrip("+-")
    exponent = "0"
    if len(text) > 1 and text[-2] in "+-":
        text, exponent = text[:-2], text[-2:]
    return float(f"{sign}0.{text}e{exponent}")


def _checksum(line: str) -> int:
    """Modulo-10 checksum of a TLE line: digits count their value, '-' counts 1."""
    return sum(int(ch) if ch.isdigit() else int(ch == "-") for ch in line[:68]) % 10
