from typing import Tuple

import numpy as np
from numba import njit


PHRED_OFFSET = 33

# BAM 4-bit base codes 0-15, and the complement of each code
NIBBLE_BASES = b"=ACMGRSVTWYHKDBN"
NIBBLE_COMPLEMENTS = b"=TGKCYSBAWRDMHVN"
COMPLEMENT_OFFSET = 16


def create_nibble_base_map() -> np.ndarray:
    """
    Create lookup table mapping 4-bit base codes to ASCII bases.
    Entries 0-15 are the forward bases, entries 16-31 their complements,
    so reverse-strand reads are decoded with code + 16.
    Returns: np.ndarray of shape (32,) with uint8 ASCII values
    """
    base_map = np.zeros(32, dtype=np.uint8)
    base_map[:COMPLEMENT_OFFSET] = np.frombuffer(NIBBLE_BASES, dtype=np.uint8)
    base_map[COMPLEMENT_OFFSET:] = np.frombuffer(NIBBLE_COMPLEMENTS, dtype=np.uint8)
    return base_map


def create_base_code_map() -> np.ndarray:
    """
    Create lookup table mapping ASCII bases to 4-bit codes (inverse of the forward
    half of create_nibble_base_map). Lowercase letters map like uppercase ones,
    anything unknown becomes N (15).
    Returns: np.ndarray of shape (256,) with uint8 codes
    """
    code_map = np.full(256, 15, dtype=np.uint8)
    for code, base in enumerate(NIBBLE_BASES):
        code_map[base] = code
        code_map[ord(chr(base).lower())] = code
    return code_map


NIBBLE_BASE_MAP = create_nibble_base_map()
BASE_CODE_MAP = create_base_code_map()


@njit
def unpack_nibbles(packed, length):
    """
    Split packed BAM sequence bytes into one 4-bit code per base.
    The high nibble of each byte holds the earlier base.

    WARNING: This function is JIT-compiled with @njit. Do not use Python objects,
    lists, dicts, or advanced numpy operations. Only basic numpy arrays and operations are supported.

    Returns: np.ndarray of uint8 codes with `length` entries
    """
    codes = np.empty(length, dtype=np.uint8)
    for i in range(length):
        byte = packed[i >> 1]
        if i & 1:
            codes[i] = np.uint8(byte & 15)
        else:
            codes[i] = np.uint8(byte >> 4)
    return codes


@njit
def pack_nibbles(codes):
    """
    Pack one 4-bit code per base into BAM layout, two bases per byte.

    WARNING: This function is JIT-compiled with @njit. Do not use Python objects,
    lists, dicts, or advanced numpy operations. Only basic numpy arrays and operations are supported.

    Returns: np.ndarray of uint8 with (len(codes) + 1) // 2 entries
    """
    n = codes.shape[0]
    packed = np.zeros((n + 1) // 2, dtype=np.uint8)
    for i in range(n):
        code = codes[i] & 15
        if i & 1:
            packed[i >> 1] = np.uint8(packed[i >> 1] | code)
        else:
            packed[i >> 1] = np.uint8(code << 4)
    return packed


def as_uint8_array(data) -> np.ndarray:
    """Accept bytes-like objects, array.array or ndarrays as a contiguous uint8 array"""
    if isinstance(data, np.ndarray):
        return np.ascontiguousarray(data, dtype=np.uint8)
    if isinstance(data, (bytes, bytearray, memoryview)):
        return np.frombuffer(data, dtype=np.uint8)
    return np.ascontiguousarray(np.asarray(data, dtype=np.uint8))


def pack_bases(sequence: str) -> np.ndarray:
    """Encode an ASCII base string into packed BAM sequence bytes"""
    ascii_bases = np.frombuffer(sequence.encode("ascii"), dtype=np.uint8)
    return pack_nibbles(BASE_CODE_MAP[ascii_bases])


def quality_to_ascii(quality_scores: np.ndarray, phred_offset: int = PHRED_OFFSET) -> np.ndarray:
    """
    Convert raw Phred values to printable ASCII. No clamping: an absent quality
    (0xFF) wraps around to ASCII 32.
    """
    return quality_scores.astype(np.uint8) + np.uint8(phred_offset)


def reconstruct(packed_sequence, packed_quality, length: int, is_reverse: bool) -> Tuple[bytes, bytes]:
    """
    Rebuild a read's sequence and quality string in original sequencing orientation.
    Reverse-strand reads are decoded through the complement half of the table,
    then both strings are reversed.
    Returns: (sequence, quality) as ASCII bytes
    """
    if length == 0:
        return b"", b""

    codes = unpack_nibbles(as_uint8_array(packed_sequence), length)
    quality = quality_to_ascii(as_uint8_array(packed_quality)[:length])

    if is_reverse:
        sequence = NIBBLE_BASE_MAP[codes + COMPLEMENT_OFFSET][::-1]
        quality = quality[::-1]
    else:
        sequence = NIBBLE_BASE_MAP[codes]

    return sequence.tobytes(), quality.tobytes()
