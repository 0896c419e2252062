from dataclasses import dataclass
import numpy as np


# SAM flag bits consumed by the classifier
BAM_FPAIRED = 0x1
BAM_FUNMAP = 0x4
BAM_FREVERSE = 0x10
BAM_FREAD1 = 0x40
BAM_FREAD2 = 0x80
BAM_FQCFAIL = 0x200


@dataclass
class AlignmentRecord:
    name: str
    flag: int
    packed_sequence: np.ndarray
    packed_quality: np.ndarray
    length: int

    @property
    def is_paired(self) -> bool:
        return bool(self.flag & BAM_FPAIRED)

    @property
    def is_read1(self) -> bool:
        return bool(self.flag & BAM_FREAD1)

    @property
    def is_read2(self) -> bool:
        return bool(self.flag & BAM_FREAD2)

    @property
    def is_reverse(self) -> bool:
        return bool(self.flag & BAM_FREVERSE)

    @property
    def is_unmapped(self) -> bool:
        return bool(self.flag & BAM_FUNMAP)

    @property
    def is_qcfail(self) -> bool:
        return bool(self.flag & BAM_FQCFAIL)


@dataclass(frozen=True)
class FormattedEntry:
    """
    One four-line FASTQ record, ready to be written.
    read_index is 0 for read 1 (and unpaired reads), 1 for read 2.
    """
    text: bytes
    read_index: int = 0


@dataclass
class ConversionStats:
    total_seen: int = 0
    exported: int = 0
    unmatched: int = 0
    role_conflicts: int = 0
    input_truncated: bool = False
