"""Master duration resolution with caller-supplied fallback"""

import logging
import math
from typing import Callable, Optional

from .errors import DurationUnavailableError, InvalidTimelineInputError

logger = logging.getLogger(__name__)

DurationProbe = Callable[[str], float]


def resolve_master_duration(audio_ref: str,
                            probe: Optional[DurationProbe],
                            fallback: Optional[float] = None) -> float:
    """
    Determine how long the output must be.

    The probe result wins when it is a positive number. Otherwise the fallback
    is used; unknown duration is never treated as zero.
    """
    if fallback is not None and (not math.isfinite(fallback) or fallback <= 0):
        raise InvalidTimelineInputError(
            f"fallback duration must be a positive number, got {fallback!r}", field="fallback_duration"
        )

    if probe is None:
        reason = "no duration probe available"
    else:
        try:
            duration = float(probe(audio_ref))
        except Exception as e:
            reason = str(e) or e.__class__.__name__
        else:
            if math.isfinite(duration) and duration > 0:
                logger.info(f"Master audio duration: {duration:.2f}s ({audio_ref})")
                return duration
            reason = f"probe returned {duration!r}"

    if fallback is None:
        raise DurationUnavailableError(audio_ref, reason)

    logger.warning(f"Could not get duration of {audio_ref}: {reason}. Using fallback of {fallback:g}s")
    return float(fallback)
