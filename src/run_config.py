from dataclasses import dataclass
from enum import Enum


DEFAULT_OUTPUT_TEMPLATE = "s_%#_sequence.txt"


class OutputMode(Enum):
    FILES = "files"              # _1, _2 and _M files from the template
    INTERLEAVED = "interleaved"  # mates on stdout, orphans to the _M file
    STDOUT = "stdout"            # everything on stdout, no pairing


@dataclass(frozen=True)
class RunConfig:
    """
    Options for one conversion run. Built once from the command line and
    handed to the classifier, router and driver.
    """
    output_template: str = DEFAULT_OUTPUT_TEMPLATE
    output_mode: OutputMode = OutputMode.FILES
    include_aligned: bool = True
    include_unaligned: bool = True
    include_filtered: bool = True
    strict: bool = False
    overwrite: bool = False
    quiet: bool = False

    @classmethod
    def from_args(cls, args) -> "RunConfig":
        if args.stdout:
            mode = OutputMode.STDOUT
        elif args.interleaved:
            mode = OutputMode.INTERLEAVED
        else:
            mode = OutputMode.FILES

        return cls(
            output_template=args.output,
            output_mode=mode,
            include_aligned=args.aligned,
            include_unaligned=args.unaligned,
            include_filtered=args.filtered,
            strict=args.strict,
            overwrite=args.force,
            quiet=args.quiet,
        )
