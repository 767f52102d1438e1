from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator


class CriterionPlotError(Exception):
    """Base class of every fatal condition raised by criterion-plot."""


class NoResultTree(CriterionPlotError):
    pass


class DataIoError(CriterionPlotError):
    pass


class DecodeError(CriterionPlotError):
    pass


class EncodingError(CriterionPlotError):
    pass


class ConventionViolation(CriterionPlotError):
    """The result tree does not follow Criterion's on-disk layout."""


class PreconditionViolation(CriterionPlotError):
    """The data is well-formed but cannot be plotted as requested."""


class EmptySelection(CriterionPlotError):
    pass


class RenderError(CriterionPlotError):
    pass


class StageError(CriterionPlotError):
    """Names the pipeline stage that failed; the cause is in __cause__."""


@contextmanager
def stage(description: str) -> Iterator[None]:
    try:
        yield
    except CriterionPlotError as exc:
        raise StageError(description) from exc


def format_chain(exc: BaseException) -> str:
    lines = [f'error: {exc}']
    cause = exc.__cause__
    while cause is not None:
        lines.append(f'  caused by: {cause}')
        cause = cause.__cause__
    return '\n'.join(lines)
