"""Utility modules: J2kSec time conversion and text output."""

from .time_utils import (
    J2K_EPOCH,
    J2K_EPOCH_UNIX,
    j2k_from_epoch,
    epoch_from_j2k,
    j2k_from_datetime,
    datetime_from_j2k,
    j2k_to_string,
    parse_time,
    to_j2k,
)

__all__ = [
    'J2K_EPOCH',
    'J2K_EPOCH_UNIX',
    'j2k_from_epoch',
    'epoch_from_j2k',
    'j2k_from_datetime',
    'datetime_from_j2k',
    'j2k_to_string',
    'parse_time',
    'to_j2k',
]
