from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml  # type: ignore[import-untyped]

from .models import CardVersion, Variant


@dataclass
class InputsConfig:
    vcf: Optional[str] = None


@dataclass
class OutputsConfig:
    dir: Path


@dataclass
class CardConfig:
    variant: Variant = Variant.DEFAULT
    version: CardVersion = CardVersion.V21


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class PipelineConfig:
    inputs: InputsConfig
    outputs: OutputsConfig
    card: CardConfig
    logging: LoggingConfig


def _load_yaml(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_pipeline_config(args: argparse.Namespace) -> PipelineConfig:
    config_data = _load_yaml(getattr(args, "config", None))
    inputs_cfg = config_data.get("inputs", {})
    outputs_cfg = config_data.get("outputs", {})
    card_cfg = config_data.get("card", {})
    logging_cfg = config_data.get("logging", {})

    inputs = InputsConfig(vcf=getattr(args, "vcf", None) or inputs_cfg.get("vcf"))

    outputs_dir = Path(getattr(args, "out_dir", None) or outputs_cfg.get("dir") or os.getcwd())
    outputs = OutputsConfig(dir=outputs_dir)

    card = CardConfig(
        variant=Variant.parse(
            getattr(args, "variant", None) or card_cfg.get("variant", "default")
        ),
        version=CardVersion.parse(
            getattr(args, "card_version", None) or card_cfg.get("version", "v21")
        ),
    )

    arg_level = getattr(args, "log_level", None)
    effective_level = (arg_level or logging_cfg.get("level") or "WARNING").upper()
    logging_config = LoggingConfig(level=effective_level)

    return PipelineConfig(
        inputs=inputs,
        outputs=outputs,
        card=card,
        logging=logging_config,
    )
