"""Exceptions raised by the estimation and ranking pipeline."""


class InvalidInputError(ValueError):
    """Input violates the estimator or ranker contract.

    Raised for empty images, out-of-range or malformed pixel data,
    duplicate image identifiers and invalid ranking arguments.
    """
