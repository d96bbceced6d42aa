"""Recovery attempt gating."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np

from lso.core.config import to_plain_dict
from lso.tracking.transform import Transform
from lso.utils.units import ft_to_m, m_to_nm
from lso.utils.vector import horizontal, normalized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttemptParams:
    """Thresholds deciding when an approach counts as a recovery attempt."""

    poll_interval_s: float = 2.0
    max_altitude_ft: float = 500.0
    max_distance_nm: float = 1.5
    min_distance_m: float = 200.0
    min_heading_dot: float = 0.65
    require_behind: bool = True

    @classmethod
    def from_omegaconf(cls, cfg: Any) -> AttemptParams:
        """Build from the ``lso.detection`` section (OmegaConf or plain dict)."""
        cfg = to_plain_dict(cfg)
        return cls(
            poll_interval_s=float(cfg.get("poll_interval_s", 2.0)),
            max_altitude_ft=float(cfg.get("max_altitude_ft", 500.0)),
            max_distance_nm=float(cfg.get("max_distance_nm", 1.5)),
            min_distance_m=float(cfg.get("min_distance_m", 200.0)),
            min_heading_dot=float(cfg.get("min_heading_dot", 0.65)),
            require_behind=bool(cfg.get("require_behind", True)),
        )


def is_recovery_attempt(
    carrier: Transform, plane: Transform, params: AttemptParams | None = None
) -> bool:
    """Whether *plane* is set up for an approach to *carrier*.

    The plane has to be low, within a short distance band behind the
    carrier and flying towards it.
    """
    params = params or AttemptParams()

    if plane.alt > ft_to_m(params.max_altitude_ft):
        logger.debug("not a recovery attempt: altitude too high (%.1f m)", plane.alt)
        return False

    ray = horizontal(carrier.position - plane.position)
    distance = float(np.linalg.norm(ray))
    if m_to_nm(distance) > params.max_distance_nm:
        logger.debug("not a recovery attempt: too far away (%.2f nm)", m_to_nm(distance))
        return False
    if distance < params.min_distance_m:
        logger.debug("not a recovery attempt: too close (%.1f m)", distance)
        return False

    ray = normalized(ray)

    if params.require_behind:
        dot = float(np.dot(normalized(carrier.forward), ray))
        if not dot >= 0.0:
            logger.debug("not a recovery attempt: plane is in front of the carrier (dot=%.2f)", dot)
            return False

    dot = float(np.dot(normalized(plane.velocity), ray))
    if not dot >= params.min_heading_dot:
        logger.debug("not a recovery attempt: not heading towards the carrier (dot=%.2f)", dot)
        return False

    return True
