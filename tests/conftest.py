import numpy as np
import pytest

from data_structures import AlignmentRecord
from sequence_reconstruction import pack_bases


def build_record(name, sequence, flag=0, qualities=None):
    if qualities is None:
        qualities = [30] * len(sequence)
    return AlignmentRecord(
        name=name,
        flag=flag,
        packed_sequence=pack_bases(sequence),
        packed_quality=np.array(qualities, dtype=np.uint8),
        length=len(sequence),
    )


@pytest.fixture
def make_record():
    return build_record
