# src/releasecache/menu.py

from typing import Mapping, Optional, Tuple

from pick import pick

from releasecache.interfaces import Chooser
from releasecache.log_utils import logger

# Esc and q leave the menu without choosing
QUIT_KEYS = (27, ord("q"))


def format_option(row: Tuple[str, ...]) -> str:
    """
    Render a display row as a single menu line.

    Parameters:
        row (Tuple[str, ...]): Columns such as `(version, date, statuses)`.

    Returns:
        str: Non-empty columns joined with " - ".
    """
    return " - ".join(column for column in row if column)


class PickChooser(Chooser):
    """Presents the choices in a terminal menu with `pick`."""

    def choose(
        self, options: Mapping[str, Tuple[str, ...]], prompt: str
    ) -> Optional[str]:
        """
        Show `options` and return the key of the selected entry.

        Returns None when there is nothing to choose from or the user quits
        with Esc or `q`.
        """
        if not options:
            logger.warning("No releases are available to choose from.")
            return None

        keys = list(options.keys())
        lines = [format_option(options[key]) for key in keys]
        title = f"{prompt}\n(press ENTER to confirm, q or Esc to cancel)"
        _selected, index = pick(lines, title, indicator="*", quit_keys=QUIT_KEYS)
        if index is None or index < 0:
            return None
        return keys[index]
