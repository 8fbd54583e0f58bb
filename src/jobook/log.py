import logging
import sys

_FORMAT = '%(asctime)s  %(levelname)-8s  %(name)s  %(message)s'
_DATE_FMT = '%Y-%m-%d %H:%M:%S'


def configure_logging(level_name: str = 'INFO') -> None:
    """Send log records to stdout once; later calls only adjust the level."""
    level = getattr(logging, (level_name or 'INFO').upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FMT))
    root.addHandler(console)
