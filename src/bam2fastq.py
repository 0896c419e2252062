import argparse
import cProfile
import itertools
import logging
import pstats
import sys
import time
from io import StringIO
from typing import BinaryIO, Iterable, Optional

from bam_reader import AlignmentReader, InputUnavailableError
from data_structures import AlignmentRecord, ConversionStats
from fastq_writer import format_fastq_entry
from mate_pairing import MateBuffer
from output_routing import (MATE1_SLOT, MATE2_SLOT, MERGED_SLOT, UNPAIRED_SLOT,
                            OutputRouter, OutputRoutingError)
from read_classification import get_lane_id, pairing_identity, should_export
from run_config import DEFAULT_OUTPUT_TEMPLATE, OutputMode, RunConfig

__version__ = "1.1.0"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 1_000_000


def convert_records(records: Iterable[AlignmentRecord], config: RunConfig,
                    stdout: Optional[BinaryIO] = None) -> ConversionStats:
    """
    Single forward pass over alignment records, writing FASTQ.
    The first record fixes the lane used in output names; outputs are opened
    before anything is processed, so a routing failure leaves no partial files.
    Paired reads are held until their mate arrives so both mate outputs stay in
    step; reads still waiting at the end go to the unpaired output.

    Returns: ConversionStats for the run
    Raises: OutputRoutingError
    """
    stats = ConversionStats()
    records = iter(records)

    first = next(records, None)
    if first is None:
        logger.warning("No reads found in the input, nothing to export")
        return stats

    lane = get_lane_id(first.name)
    logger.debug(f"Lane {lane} taken from first read {first.name}")

    paired_output = config.output_mode is not OutputMode.STDOUT
    mate_buffer = MateBuffer()

    with OutputRouter.open(config, lane, stdout=stdout) as router:
        for record in itertools.chain([first], records):
            stats.total_seen += 1
            if stats.total_seen % PROGRESS_INTERVAL == 0:
                logger.debug(f"Processed {stats.total_seen:,} reads, {len(mate_buffer):,} waiting for a mate")

            if not should_export(record.flag, config):
                continue

            stats.exported += 1
            entry = format_fastq_entry(record)

            if not paired_output:
                router.write(MERGED_SLOT, entry)
            elif not record.is_paired:
                router.write(UNPAIRED_SLOT, entry)
            else:
                # Both members of a pair have to land at the same position of the two mate outputs
                pair = mate_buffer.offer(pairing_identity(record.name, config.strict), entry)
                if pair is not None:
                    router.write(MATE1_SLOT, pair[0])
                    router.write(MATE2_SLOT, pair[1])

        stats.unmatched = mate_buffer.flush(router)

    stats.role_conflicts = mate_buffer.role_conflicts

    logger.info(f"{stats.total_seen:,} sequences in the input")
    logger.info(f"{stats.exported:,} sequences exported")
    if stats.unmatched:
        logger.warning(
            f"{stats.unmatched:,} reads could not be matched to a mate "
            "and were written to the unpaired output"
        )
    if stats.role_conflicts:
        logger.warning(f"{stats.role_conflicts:,} pairs were matched from two reads with the same mate number")

    return stats


def convert_bam_to_fastq(input_path: str, config: RunConfig,
                         stdout: Optional[BinaryIO] = None) -> ConversionStats:
    """
    Open an alignment file and convert it to FASTQ.
    Raises: InputUnavailableError, OutputRoutingError
    """
    with AlignmentReader(input_path) as reader:
        stats = convert_records(reader, config, stdout=stdout)

    if reader.truncated:
        stats.input_truncated = True
        logger.warning(
            f"{input_path} could not be read to the end; only the first "
            f"{stats.total_seen:,} reads were converted"
        )
    return stats


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bam2fastq",
        description="Extract sequences from a BAM file as FASTQ, keeping mates paired.",
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument("input_path", metavar="BAM", help="Path to BAM/SAM/CRAM file")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s v{__version__}")

    # Output Group
    output_group = parser.add_argument_group("OUTPUT")
    output_group.add_argument(
        "-o",
        "--output",
        type=str,
        metavar="FILE",
        default=DEFAULT_OUTPUT_TEMPLATE,
        help="Name of the FASTQ file(s) to generate. %% is replaced with the lane number\n"
        "and # with _1/_2 for mates and _M for unmatched reads [s_%%#_sequence.txt]",
    )
    destination = output_group.add_mutually_exclusive_group()
    destination.add_argument(
        "--stdout",
        action="store_true",
        help="Write every read to standard output, ignoring pairs [off]",
    )
    destination.add_argument(
        "--interleaved",
        action="store_true",
        help="Interleave mates on standard output, unmatched reads go to the _M file [off]",
    )
    output_group.add_argument(
        "-f",
        "--force",
        "--overwrite",
        dest="force",
        action="store_true",
        help="Overwrite existing output files [exit rather than overwrite]",
    )

    # Filter Group
    filter_group = parser.add_argument_group("READ SELECTION")
    for name, what in (
        ("aligned", "Reads that are aligned"),
        ("unaligned", "Reads that are not aligned"),
        ("filtered", "Reads marked as failing QC checks"),
    ):
        filter_group.add_argument(
            f"--{name}", dest=name, action="store_true", default=True,
            help=f"{what} will be extracted [on]",
        )
        filter_group.add_argument(
            f"--no-{name}", dest=name, action="store_false",
            help=f"{what} will not be extracted",
        )
    filter_group.add_argument(
        "-s",
        "--strict",
        action="store_true",
        help="Pair reads by their exact names, without dropping a trailing mate number [off]",
    )

    # Logging Group
    log_group = parser.add_argument_group("LOGGING & PROFILING")
    log_group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress informational messages [off]",
    )
    log_group.add_argument(
        "--verbose",
        type=int,
        metavar="INT",
        default=0,
        choices=[0, 1],
        help="Enable verbose logging (0/1) [0]",
    )
    log_group.add_argument(
        "--profile",
        type=int,
        metavar="INT",
        default=0,
        choices=[0, 1],
        help="Enable cProfile profiling (0/1) [0]",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = RunConfig.from_args(args)

    root_logger = logging.getLogger()
    if args.verbose == 1:
        root_logger.setLevel(logging.DEBUG)
        # numba logs its whole compiler pipeline at debug level
        logging.getLogger("numba").setLevel(logging.WARNING)
    elif config.quiet:
        root_logger.setLevel(logging.WARNING)
    else:
        root_logger.setLevel(logging.INFO)

    start_time = time.perf_counter()

    if args.profile == 1:
        profiler = cProfile.Profile()
        profiler.enable()
        logger.info("Profiling enabled...")

    try:
        convert_bam_to_fastq(args.input_path, config)
    except (InputUnavailableError, OutputRoutingError) as e:
        logger.error(str(e))
        return 1
    finally:
        if args.profile == 1:
            profiler.disable()
            s = StringIO()
            ps = pstats.Stats(profiler, stream=s).sort_stats("cumulative")
            ps.print_stats(20)
            sys.stderr.write("Profiling Results:\n" + s.getvalue())

    logger.debug(f"Conversion completed in {time.perf_counter() - start_time:.4f} seconds")
    return 0


if __name__ == "__main__":
    sys.exit(main())
