import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, List, Optional

from data_structures import FormattedEntry
from run_config import OutputMode, RunConfig

logger = logging.getLogger(__name__)

MERGED_SLOT = 0
MATE1_SLOT = 0
MATE2_SLOT = 1
UNPAIRED_SLOT = 2

MATE_TAGS = ("_1", "_2", "_M")
LANE_MARKER = "%"
READ_MARKER = "#"


class OutputRoutingError(Exception):
    """Outputs for this run can't be set up; nothing has been written."""


class SinkKind(Enum):
    OWNED_FILE = "file"
    SHARED_STDOUT = "stdout"


@dataclass
class OutputSink:
    handle: BinaryIO
    kind: SinkKind
    path: Optional[str] = None

    def close(self):
        if self.kind is SinkKind.OWNED_FILE:
            self.handle.close()
        else:
            # Never close the process' standard output
            self.handle.flush()


def expand_output_template(template: str, lane: int, mate_tag: str) -> str:
    """
    Substitute the lane number for '%' and the mate tag (_1, _2, _M) for '#'.
    Raises: OutputRoutingError if '%' is used without a known lane, or '#' is missing
    """
    output = template
    if LANE_MARKER in output:
        if lane == 0:
            raise OutputRoutingError(
                "The lane could not be determined from the reads. Specify output files "
                f"(using --output) that do not include the lane number ({LANE_MARKER})"
            )
        output = output.replace(LANE_MARKER, str(lane), 1)

    if READ_MARKER not in output:
        raise OutputRoutingError(
            "The sequences are written as pairs, but a single output file is specified. "
            f"Ensure that the output filename (--output) includes a {READ_MARKER} symbol "
            "to be replaced with the read number"
        )
    return output.replace(READ_MARKER, mate_tag, 1)


def _open_owned_file(path: str) -> OutputSink:
    return OutputSink(handle=open(path, "wb"), kind=SinkKind.OWNED_FILE, path=path)


class OutputRouter:
    """
    Owns the output slots for one run: [merged] in stdout mode, otherwise
    [mate1, mate2, unpaired] where mate1/mate2 may share standard output.
    """

    def __init__(self, slots: List[OutputSink]):
        self.slots = slots
        self._closed = False

    @classmethod
    def open(cls, config: RunConfig, lane: int, stdout: Optional[BinaryIO] = None) -> "OutputRouter":
        """
        Validate the output template and open every destination for the configured mode.
        All checks happen before the first file is created.
        Raises: OutputRoutingError
        """
        if stdout is None:
            stdout = sys.stdout.buffer

        if config.output_mode is OutputMode.STDOUT:
            logger.info("Writing all reads to standard output")
            return cls([OutputSink(handle=stdout, kind=SinkKind.SHARED_STDOUT)])

        paths = [expand_output_template(config.output_template, lane, tag) for tag in MATE_TAGS]

        if config.output_mode is OutputMode.INTERLEAVED:
            logger.info(f"Interleaving mates on standard output, unmatched reads will be in {paths[2]}")
            shared = OutputSink(handle=stdout, kind=SinkKind.SHARED_STDOUT)
            return cls([shared, shared, cls._open_files(paths[2:])[0]])

        logger.info(f"This looks like paired data from lane {lane}.")
        logger.info(f"Output will be in {paths[0]} and {paths[1]}")
        logger.info(f"Single-end reads will be in {paths[2]}")

        if not config.overwrite:
            for path in paths[:2]:
                if os.path.exists(path):
                    raise OutputRoutingError(f"{path} already exists. Specify --force to overwrite")

        return cls(cls._open_files(paths))

    @staticmethod
    def _open_files(paths: List[str]) -> List[OutputSink]:
        sinks = []
        try:
            for path in paths:
                sinks.append(_open_owned_file(path))
        except OSError as e:
            for sink in sinks:
                sink.close()
                os.remove(sink.path)
            raise OutputRoutingError(f"Could not open output file {e.filename}: {e.strerror}") from e
        return sinks

    def __len__(self):
        return len(self.slots)

    def write(self, slot: int, entry: FormattedEntry):
        self.slots[slot].handle.write(entry.text)

    def close_all(self):
        if self._closed:
            return
        self._closed = True
        # mate slots share one sink in interleaved mode
        seen = set()
        for sink in self.slots:
            if id(sink) in seen:
                continue
            seen.add(id(sink))
            sink.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close_all()
        return False
