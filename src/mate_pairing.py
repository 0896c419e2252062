import logging
from typing import Dict, Optional, Tuple

from data_structures import FormattedEntry
from output_routing import UNPAIRED_SLOT, OutputRouter

logger = logging.getLogger(__name__)


class MateBuffer:
    """
    Holds the formatted entry of each paired read whose mate hasn't shown up yet,
    keyed by pairing identity. Memory grows only with the number of currently
    unmatched reads; a matched pair is evicted as soon as it is emitted.
    """

    def __init__(self):
        self._pending: Dict[str, FormattedEntry] = {}
        self.role_conflicts = 0

    def __len__(self):
        return len(self._pending)

    def __contains__(self, key):
        return key in self._pending

    def offer(self, key: str, entry: FormattedEntry) -> Optional[Tuple[FormattedEntry, FormattedEntry]]:
        """
        Buffer a paired read, or complete its pair.
        The arriving entry goes to the slot of its own read index and the buffered
        one is assumed to be its complement.
        Returns: None while the mate is missing, else (mate1_entry, mate2_entry)
        """
        mate = self._pending.pop(key, None)
        if mate is None:
            self._pending[key] = entry
            return None

        if mate.read_index == entry.read_index:
            self.role_conflicts += 1
            logger.debug(f"Both reads paired under '{key}' claim to be read {entry.read_index + 1}")

        if entry.read_index == 0:
            return entry, mate
        return mate, entry

    def flush(self, router: OutputRouter) -> int:
        """
        Write every unmatched entry to the unpaired slot and empty the buffer.
        Returns: number of orphaned reads written
        """
        orphans = len(self._pending)
        for entry in self._pending.values():
            router.write(UNPAIRED_SLOT, entry)
        self._pending.clear()
        return orphans
