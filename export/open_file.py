import os
import subprocess
import sys
from pathlib import Path

from common.support.reporting import NullReporter, Reporter


def _viewer_command(path: Path) -> list[str] | None:
    """
    Command that hands path to the desktop viewer; None on Windows, where
    os.startfile does it instead.
    """
    if sys.platform == "darwin":
        return ["open", str(path)]
    if os.name == "nt":
        return None
    return ["xdg-open", str(path)]


def open_plot(path: Path, *, reporter: Reporter | None = None) -> bool:
    """
    Best effort: returns True once a viewer was launched. A missing chart or
    a viewer that cannot start is reported as a warning, never raised.
    """
    rep: Reporter = reporter if reporter is not None else NullReporter()

    if not path.is_file():
        rep.warning(f"no chart to open at {path}")
        return False

    cmd = _viewer_command(path)
    try:
        if cmd is None:
            getattr(os, "startfile")(str(path))  # type: ignore[misc]
        else:
            subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except OSError as e:
        rep.warning(f"failed to open file: {path} ({e})")
        return False

    rep.info(f"Opened {path}")
    return True
