"""
Unit tests for base/quality reconstruction from packed BAM payloads.
"""
import array

import numpy as np

from sequence_reconstruction import (NIBBLE_BASE_MAP, create_nibble_base_map,
                                     pack_bases, pack_nibbles, reconstruct,
                                     unpack_nibbles)


class TestBaseMap:
    def test_forward_codes(self):
        base_map = create_nibble_base_map()
        assert len(base_map) == 32
        assert [chr(base_map[c]) for c in (1, 2, 4, 8, 15)] == ["A", "C", "G", "T", "N"]

    def test_complement_codes(self):
        assert [chr(NIBBLE_BASE_MAP[c]) for c in (17, 18, 20, 24, 31)] == ["T", "G", "C", "A", "N"]

    def test_ambiguity_codes_complement(self):
        # M (A/C) <-> K (G/T), R (A/G) <-> Y (C/T)
        assert chr(NIBBLE_BASE_MAP[3]) == "M"
        assert chr(NIBBLE_BASE_MAP[3 + 16]) == "K"
        assert chr(NIBBLE_BASE_MAP[5]) == "R"
        assert chr(NIBBLE_BASE_MAP[5 + 16]) == "Y"


class TestNibblePacking:
    def test_unpack_even_length(self):
        packed = np.array([0x12, 0x48], dtype=np.uint8)
        assert list(unpack_nibbles(packed, 4)) == [1, 2, 4, 8]

    def test_unpack_odd_length_ignores_padding(self):
        packed = np.array([0x12, 0xF0], dtype=np.uint8)
        assert list(unpack_nibbles(packed, 3)) == [1, 2, 15]

    def test_pack_bases(self):
        assert list(pack_bases("ACGTN")) == [0x12, 0x48, 0xF0]

    def test_pack_unknown_and_lowercase(self):
        assert list(pack_bases("acX")) == [0x12, 0xF0]

    def test_pack_empty(self):
        assert len(pack_nibbles(np.zeros(0, dtype=np.uint8))) == 0


class TestReconstruct:
    def test_forward_read(self):
        seq, qual = reconstruct(pack_bases("ACGTN"), [0, 10, 20, 30, 40], 5, False)
        assert seq == b"ACGTN"
        assert qual == b"!+5?I"

    def test_reverse_read_is_reverse_complemented(self):
        seq, qual = reconstruct(pack_bases("AACG"), [1, 2, 3, 4], 4, True)
        assert seq == b"CGTT"
        assert qual == b'%$#"'

    def test_reverse_matches_direct_mapping(self):
        forward = "GATTACANNC"
        quals = list(range(10))
        seq, qual = reconstruct(pack_bases(forward), quals, len(forward), True)
        complement = {"A": "T", "C": "G", "G": "C", "T": "A", "N": "N"}
        assert seq.decode() == "".join(complement[b] for b in reversed(forward))
        assert qual == bytes(q + 33 for q in reversed(quals))

    def test_absent_quality_becomes_space(self):
        _, qual = reconstruct(pack_bases("AC"), [0xFF, 0xFF], 2, False)
        assert qual == b"  "

    def test_accepts_bytes_and_array_payloads(self):
        seq, qual = reconstruct(bytes([0x12, 0x40]), array.array("B", [30, 30, 30]), 3, False)
        assert seq == b"ACG"
        assert qual == b"???"

    def test_empty_read(self):
        assert reconstruct(np.zeros(0, dtype=np.uint8), np.zeros(0, dtype=np.uint8), 0, True) == (b"", b"")
