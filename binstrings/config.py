from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from binstrings.encodings import parse_encoding
from binstrings.exceptions import EncodingNotFoundError


class ExtractionCfg(BaseModel):
    min_length: int = Field(default=3, ge=1)
    encodings: List[str] = Field(default_factory=lambda: ["ascii"])

    # adds vertical tab and form feed to the printable control bytes
    wide_controls: bool = False

    @field_validator("encodings")
    @classmethod
    def _known_encodings(cls, v: List[str]) -> List[str]:
        for name in v:
            try:
                parse_encoding(name)
            except EncodingNotFoundError as e:
                raise ValueError(str(e)) from e
        return v


class SourceCfg(BaseModel):
    buffer_size: int = Field(default=1024 * 1024, ge=1)


class AppConfig(BaseModel):
    schema_version: str = "1.0"
    extraction: ExtractionCfg = ExtractionCfg()
    source: SourceCfg = SourceCfg()


def load_config(path: Optional[str]) -> AppConfig:
    if not path:
        return AppConfig()
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    return AppConfig.model_validate(data or {})


def config_to_snapshot(cfg: AppConfig) -> Dict[str, Any]:
    return cfg.model_dump()
