import re

from data_structures import BAM_FPAIRED, BAM_FQCFAIL, BAM_FREAD1, BAM_FUNMAP
from run_config import RunConfig


PAIR_SUFFIXES = ("/1", "/2")
LEADING_INT = re.compile(r"\s*(\d+)")


def should_export(flag: int, config: RunConfig) -> bool:
    """
    Apply the inclusion policy to a record's flag bits.
    A read must pass the aligned/unaligned gate and the QC-fail gate.
    """
    unmapped = bool(flag & BAM_FUNMAP)
    if not config.include_aligned and not unmapped:
        return False
    if not config.include_unaligned and unmapped:
        return False
    if not config.include_filtered and flag & BAM_FQCFAIL:
        return False
    return True


def get_read_index(flag: int) -> int:
    """0 for read 1, 1 for anything else. Doubles as the mate slot index."""
    return 0 if flag & BAM_FREAD1 else 1


def canonical_name(read_name: str, flag: int) -> str:
    if flag & BAM_FPAIRED:
        return read_name + PAIR_SUFFIXES[get_read_index(flag)]
    return read_name


def pairing_identity(read_name: str, strict: bool = False) -> str:
    """
    Key used to find a read's mate. Outside strict mode a trailing mate number
    embedded in the name (readA1 / readA2) is dropped so both mates share a key.
    """
    if strict or len(read_name) < 3:
        return read_name
    if read_name[-1].isdigit() and not read_name[-2].isdigit():
        return read_name[:-1]
    return read_name


def get_lane_id(read_name: str) -> int:
    """
    Lane number from the second colon-delimited field of an Illumina style name
    (e.g. HWI-ST100:3:1101:...). Returns 0 when it can't be determined.
    """
    parts = read_name.split(":", 2)
    if len(parts) < 3 or not parts[1]:
        return 0
    match = LEADING_INT.match(parts[1])
    if match is None:
        return 0
    return int(match.group(1))
