"""Post-build check that well-known entries made it into the index."""

import logging
from pathlib import Path
from types import MappingProxyType

import yaml

from .errors import MissingEntryError

log = logging.getLogger(__name__)

CATALOGUE_FILE = Path(__file__).with_name("expected_entries.yaml")


def load_catalogue(path=CATALOGUE_FILE):
    """Read an ``{entry type: [names]}`` catalogue from a YAML file."""
    with open(path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    return MappingProxyType({
        entry_type: tuple(str(name) for name in names)
        for entry_type, names in data.items()
    })


EXPECTED_ENTRIES = load_catalogue()


def validate(index, catalogue=EXPECTED_ENTRIES):
    """Raise :class:`MissingEntryError` for the first catalogued entry not indexed."""
    checked = 0
    for entry_type, names in catalogue.items():
        for name in names:
            if index.count(name=name, type=entry_type) == 0:
                raise MissingEntryError(entry_type, name)
            checked += 1
    log.info("Sanity check passed (%d expected entries present)", checked)
