"""Failure taxonomy for individual probes."""

from __future__ import annotations


class ProbeError(Exception):
    """Base class for a single probe that did not produce a usable value."""


class ProbeTimeout(ProbeError):
    """The probe did not finish before its deadline."""


class ProbeUnreachable(ProbeError):
    """The target could not be reached (DNS, refused connection, missing binary, ...)."""


class ParseFailure(ProbeError):
    """The probe ran but its output could not be interpreted."""


class AllCandidatesExhausted(ProbeError):
    """Every endpoint or transfer method in a fallback chain failed."""
