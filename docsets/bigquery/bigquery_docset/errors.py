"""Exceptions raised while building the docset."""


class DocsetError(RuntimeError):
    """Base class for build failures that abort the whole run."""


class ClassificationError(DocsetError):
    """A heading, table row or syntax string matched none of the known rules."""

    def __init__(self, path, message, text):
        self.path = path
        self.text = text
        super().__init__(f"{path}: {message}: {text}")


class MissingEntryError(DocsetError):
    """An expected entry is absent from the built index."""

    def __init__(self, entry_type, name):
        self.entry_type = entry_type
        self.name = name
        super().__init__(f"{{'name': {name!r}, 'type': {entry_type!r}}} not found in index!")


class VersionError(DocsetError):
    """The docset version could not be determined."""
