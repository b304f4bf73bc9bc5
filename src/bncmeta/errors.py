"""Exceptions shared across the normalization pipeline."""


class FormatError(Exception):
    """Input violates the corpus format contract; aborts the whole batch.

    Raised for corrupt headers (missing section, duplicate or empty
    identifier), malformed ``decls`` pairs, a missing root identifier and
    a root identifier that does not match the file name.
    """
