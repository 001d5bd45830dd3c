"""Load reference data from YAML."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from combine_normalizer.domain.models import BrandAlias, CombineModel, ModelVariant, TypoPattern
from combine_normalizer.errors import ReferenceDataError
from combine_normalizer.logging import get_logger

from .store import ReferenceData

logger = get_logger(__name__, component="reference")

DEFAULT_REFERENCE_PATH = Path(__file__).parent / "default_reference.yaml"

SECTIONS = ("models", "brand_aliases", "model_variants", "typo_patterns")

RecordT = TypeVar("RecordT", bound=BaseModel)


def load_reference_data(path: Optional[Path] = None) -> ReferenceData:
    """
    Load and index reference data from a YAML file.

    Args:
        path: YAML file to read; defaults to the packaged reference data

    Returns:
        Immutable ReferenceData snapshot

    Raises:
        ReferenceDataError: If the file cannot be read, a record is malformed,
            or the records break an integrity rule
    """
    source = Path(path) if path else DEFAULT_REFERENCE_PATH
    raw = _read_yaml(source)
    snapshot = parse_reference_data(raw)

    logger.info(
        "Reference data loaded",
        extra={"event": "reference.loaded", "path": str(source), **snapshot.summary()},
    )
    return snapshot


def parse_reference_data(raw: Dict[str, Any]) -> ReferenceData:
    """
    Validate a raw mapping (parsed YAML) into a ReferenceData snapshot.

    Every malformed record is reported, not just the first one.
    """
    if not isinstance(raw, dict):
        raise ReferenceDataError(
            f"Reference data must be a mapping, got {type(raw).__name__}",
            suggestions=[f"Top-level keys: {', '.join(SECTIONS)}"],
        )

    unknown = sorted(set(raw) - set(SECTIONS))
    errors: List[str] = [f"Unknown section '{name}'" for name in unknown]

    models = _parse_section(raw, "models", CombineModel, errors)
    aliases = _parse_section(raw, "brand_aliases", BrandAlias, errors)
    variants = _parse_section(raw, "model_variants", ModelVariant, errors)
    patterns = _parse_section(raw, "typo_patterns", TypoPattern, errors)

    if errors:
        raise ReferenceDataError(
            "Reference data validation failed",
            errors=errors,
            suggestions=["Review combine_normalizer/reference/default_reference.yaml for the expected layout"],
        )

    return ReferenceData(
        models=models,
        brand_aliases=aliases,
        model_variants=variants,
        typo_patterns=patterns,
    )


def _parse_section(
    raw: Dict[str, Any], name: str, record_type: Type[RecordT], errors: List[str]
) -> List[RecordT]:
    items = raw.get(name) or []
    if not isinstance(items, list):
        errors.append(f"Section '{name}' must be a list, got {type(items).__name__}")
        return []

    records = []
    for index, item in enumerate(items):
        try:
            records.append(record_type.model_validate(item))
        except ValidationError as e:
            for detail in e.errors():
                field_path = " -> ".join(str(loc) for loc in detail["loc"]) or "(record)"
                errors.append(f"{name}[{index}] {field_path}: {detail['msg']}")
    return records


def _read_yaml(source: Path) -> Any:
    try:
        with open(source, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ReferenceDataError(
            f"Failed to parse reference data YAML: {e}",
            suggestions=["Check YAML syntax; quote regular expressions with single quotes"],
        )
    except OSError as e:
        raise ReferenceDataError(
            f"Failed to read reference data file {source}: {e}",
            suggestions=[f"Ensure {source} exists and is readable"],
        )

    return raw if raw is not None else {}
