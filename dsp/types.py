"""Shared data types for the effect engine."""

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

log = logging.getLogger("effects")


class EffectOptions(BaseModel):
    """Optional effect parameters. None means "use the default or inherited value"."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    # Echo
    delay: Optional[float] = None
    decay: Optional[float] = None
    repeats: Optional[int] = Field(default=None, ge=0)
    # Binaural
    hz: Optional[float] = None
    offset: Optional[float] = None
    amplitude: Optional[float] = None
    fade_ms: Optional[float] = Field(default=None, alias="fadeMs")
    # Pan: -1.0 full left, 0.0 centre, 1.0 full right
    pan: Optional[float] = None

    @classmethod
    def from_json(cls, text: Optional[str]) -> "EffectOptions":
        """Parse a per-tag options payload. Anything malformed yields empty options."""
        if not text or not text.strip():
            return cls()
        try:
            # Strict: "0.5" or true where a number belongs makes the payload malformed
            return cls.model_validate_json(text, strict=True)
        except ValidationError as e:
            log.warning("Ignoring malformed effect options %r: %s", text[:200], e)
            return cls()

    def merge(self, override: "EffectOptions") -> "EffectOptions":
        """Fields set on `override` win; everything else comes from self."""
        return self.model_copy(update=override.model_dump(exclude_none=True))
