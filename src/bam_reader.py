import logging

import numpy as np
import pysam

from data_structures import AlignmentRecord
from sequence_reconstruction import as_uint8_array, pack_bases

logger = logging.getLogger(__name__)

MISSING_QUALITY = 0xFF


class InputUnavailableError(Exception):
    """The alignment file could not be opened."""


def record_from_segment(segment: pysam.AlignedSegment) -> AlignmentRecord:
    """
    Convert a pysam segment to the packed form the reconstructor works on.
    Sequence and qualities stay in aligned orientation; absent qualities are 0xFF.
    """
    sequence = segment.query_sequence or ""
    length = len(sequence)

    qualities = segment.query_qualities
    if qualities is None:
        packed_quality = np.full(length, MISSING_QUALITY, dtype=np.uint8)
    else:
        packed_quality = as_uint8_array(qualities)

    return AlignmentRecord(
        name=segment.query_name or "",
        flag=segment.flag,
        packed_sequence=pack_bases(sequence),
        packed_quality=packed_quality,
        length=length,
    )


class AlignmentReader:
    """
    Forward-only iterator over the records of a SAM/BAM/CRAM file, in file order.
    A read error partway through is logged and ends the stream.
    """

    def __init__(self, path: str):
        self.path = path
        try:
            # check_sq=False so unaligned archives without @SQ lines open too;
            # a missing EOF marker is reported when iteration hits the damaged block
            self._alignment_file = pysam.AlignmentFile(path, "r", check_sq=False, ignore_truncation=True)
        except (OSError, ValueError) as e:
            raise InputUnavailableError(f"Could not open {path}: {e}") from e
        self.read_error = None

    def __iter__(self):
        segments = self._alignment_file.fetch(until_eof=True)
        while True:
            try:
                segment = next(segments)
            except StopIteration:
                return
            except OSError as e:
                self.read_error = e
                logger.warning(f"Stopped reading {self.path} early: {e}")
                return
            yield record_from_segment(segment)

    @property
    def truncated(self) -> bool:
        return self.read_error is not None

    def close(self):
        try:
            self._alignment_file.close()
        except OSError as e:
            logger.warning(f"Error closing {self.path}: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
