from data_structures import AlignmentRecord, FormattedEntry
from read_classification import canonical_name, get_read_index
from sequence_reconstruction import reconstruct


def format_fastq_entry(record: AlignmentRecord) -> FormattedEntry:
    """
    Build the four-line FASTQ block for one alignment record.
    Sequence and qualities are restored to sequencing orientation first.
    """
    sequence, quality = reconstruct(
        record.packed_sequence, record.packed_quality, record.length, record.is_reverse
    )
    name = canonical_name(record.name, record.flag).encode("utf-8")

    text = b"".join((b"@", name, b"\n", sequence, b"\n+\n", quality, b"\n"))
    return FormattedEntry(text=text, read_index=get_read_index(record.flag))
