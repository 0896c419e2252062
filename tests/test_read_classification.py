import pytest

from data_structures import (BAM_FPAIRED, BAM_FQCFAIL, BAM_FREAD1, BAM_FREAD2,
                             BAM_FUNMAP)
from read_classification import (canonical_name, get_lane_id, get_read_index,
                                 pairing_identity, should_export)
from run_config import RunConfig


class TestShouldExport:
    def test_default_policy_exports_everything(self):
        config = RunConfig()
        for flag in (0, BAM_FUNMAP, BAM_FQCFAIL, BAM_FUNMAP | BAM_FQCFAIL):
            assert should_export(flag, config)

    def test_no_aligned(self):
        config = RunConfig(include_aligned=False)
        assert not should_export(0, config)
        assert should_export(BAM_FUNMAP, config)

    def test_no_unaligned(self):
        config = RunConfig(include_unaligned=False)
        assert should_export(0, config)
        assert not should_export(BAM_FUNMAP, config)

    def test_no_filtered(self):
        config = RunConfig(include_filtered=False)
        assert not should_export(BAM_FQCFAIL, config)
        assert not should_export(BAM_FQCFAIL | BAM_FUNMAP, config)
        assert should_export(BAM_FUNMAP, config)

    def test_gates_combine(self):
        config = RunConfig(include_unaligned=False, include_filtered=False)
        assert not should_export(BAM_FUNMAP, config)
        assert not should_export(BAM_FQCFAIL, config)
        assert should_export(BAM_FPAIRED, config)


class TestNames:
    def test_read_index(self):
        assert get_read_index(BAM_FPAIRED | BAM_FREAD1) == 0
        assert get_read_index(BAM_FPAIRED | BAM_FREAD2) == 1
        assert get_read_index(BAM_FPAIRED) == 1

    def test_canonical_name(self):
        assert canonical_name("frag", BAM_FPAIRED | BAM_FREAD1) == "frag/1"
        assert canonical_name("frag", BAM_FPAIRED | BAM_FREAD2) == "frag/2"
        assert canonical_name("frag", BAM_FREAD1) == "frag"
        assert canonical_name("frag", 0) == "frag"

    @pytest.mark.parametrize("name, expected", [
        ("sample1", "sample"),
        ("sample12", "sample12"),
        ("readA1", "readA"),
        ("readA2", "readA"),
        ("read/1", "read/"),
        ("ab1", "ab"),
        ("b1", "b1"),
        ("sample", "sample"),
    ])
    def test_pairing_identity_mangles(self, name, expected):
        assert pairing_identity(name, strict=False) == expected

    @pytest.mark.parametrize("name", ["sample1", "sample12", "readA2"])
    def test_pairing_identity_strict(self, name):
        assert pairing_identity(name, strict=True) == name


class TestLaneId:
    @pytest.mark.parametrize("name, lane", [
        ("HWI-ST1234:3:1101:1000:2000", 3),
        ("HWUSI-EAS100R:6:73:941:1973#0/1", 6),
        ("M0:12abc:1", 12),
        ("read1", 0),
        ("inst:7", 0),
        ("inst::7", 0),
        ("inst:x:7", 0),
    ])
    def test_lane(self, name, lane):
        assert get_lane_id(name) == lane
