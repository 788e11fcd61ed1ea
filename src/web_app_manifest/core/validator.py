"""JSON Schema validation for processed web app manifests.

The bundled schema describes a manifest after processing: every URL member is
absolute and ``scope`` and ``id`` are present. Checking a manifest that was
only parsed is expected to fail on its relative URLs.
"""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, Union

from jsonschema import ValidationError
from jsonschema.exceptions import best_match
from jsonschema.validators import validator_for

if TYPE_CHECKING:
    from ..manifest import WebAppManifest

# src/web_app_manifest/core/validator.py -> src/web_app_manifest/schemas/
SCHEMA_PATH = Path(__file__).parent.parent / "schemas" / "web-app-manifest.schema.json"


def load_schema() -> dict[str, Any]:
    """Load the JSON schema bundled with the package.

    Raises:
        FileNotFoundError: If schema file doesn't exist
        json.JSONDecodeError: If schema is invalid JSON
    """
    if not SCHEMA_PATH.exists():
        raise FileNotFoundError(f"Schema file not found: {SCHEMA_PATH}")

    with SCHEMA_PATH.open("r", encoding="utf-8") as f:
        return json.load(f)  # type: ignore[no-any-return]


def _serialize(manifest: Union["WebAppManifest", Mapping[str, Any]]) -> dict[str, Any]:
    # Already-serialized documents are accepted so callers can check edited output
    if isinstance(manifest, Mapping):
        return dict(manifest)
    return manifest.to_dict()


def schema_errors(manifest: Union["WebAppManifest", Mapping[str, Any]]) -> list[ValidationError]:
    """Return every schema violation of a manifest, ordered by member path.

    Args:
        manifest: A processed ``WebAppManifest``, or its ``to_dict()`` output
    """
    schema = load_schema()
    validator = validator_for(schema)(schema)
    return sorted(validator.iter_errors(_serialize(manifest)), key=lambda e: list(map(str, e.path)))


def validate_manifest(manifest: Union["WebAppManifest", Mapping[str, Any]]) -> None:
    """Validate a processed manifest against the JSON Schema.

    Raises:
        ValidationError: The most relevant violation, if there is any
        FileNotFoundError: If schema file is missing
        json.JSONDecodeError: If schema is invalid
    """
    error = best_match(schema_errors(manifest))
    if error is not None:
        raise error


def validate_manifest_with_error_details(
    manifest: Union["WebAppManifest", Mapping[str, Any]],
) -> tuple[bool, str | None]:
    """Validate a manifest and describe what is wrong with it.

    Returns:
        Tuple of (is_valid, error_message). error_message is None if valid.
    """
    try:
        errors = schema_errors(manifest)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        return False, f"Schema error: {e}"

    error = best_match(errors)
    if error is None:
        return True, None

    error_path = " -> ".join(str(p) for p in error.path) if error.path else "root"
    error_msg = f"Validation error at {error_path}: {error.message}"

    if error.instance:
        error_msg += f"\nInvalid value: {error.instance}"

    if len(errors) > 1:
        error_msg += f"\n({len(errors) - 1} more schema error(s))"

    return False, error_msg
