"""
Polar library: YAML records <-> ContinuousPolar.

The shipped library lives in polarsim/data/polars.yaml. Entries are plain
key-value records, so polars can be edited, overridden field by field and
written back without touching code.
"""

import logging
import yaml
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from ..aero.polar import (
    CONTROL_NAMES, SCALAR_FIELDS, ContinuousPolar, SymmetricControl,
)
from ..aero.segments import AeroSegment

logger = logging.getLogger(__name__)

DEFAULT_LIBRARY_PATH = Path(__file__).resolve().parent.parent / 'data' / 'polars.yaml'

CONTROL_FIELDS = tuple(f.name for f in fields(SymmetricControl))
OVERRIDABLE_FIELDS = SCALAR_FIELDS + ('cg_offset_fraction',)


def control_from_dict(name: str, record: Mapping[str, Any]) -> SymmetricControl:
    unknown = set(record) - set(CONTROL_FIELDS)
    if unknown:
        raise ValueError(f"Control '{name}': unknown derivative(s) {sorted(unknown)}")
    return SymmetricControl(**{k: float(v) for k, v in record.items()})


def polar_from_dict(record: Mapping[str, Any]) -> ContinuousPolar:
    """
    Build a ContinuousPolar from a key-value record.

    Every scalar field is required; `controls` and `cg_offset_fraction` are
    optional. Mass distributions are attached by the vehicle builders.
    """
    missing = [name for name in ('name', 'type') + SCALAR_FIELDS if name not in record]
    if missing:
        raise ValueError(f"Polar record '{record.get('name', '?')}' is missing {missing}")

    known = set(('name', 'type', 'controls') + OVERRIDABLE_FIELDS)
    unknown = set(record) - known
    if unknown:
        raise ValueError(f"Polar record '{record['name']}' has unknown field(s) {sorted(unknown)}")

    controls = {
        control_name: control_from_dict(control_name, table or {})
        for control_name, table in (record.get('controls') or {}).items()
    }
    values = {name: float(record[name]) for name in SCALAR_FIELDS}
    return ContinuousPolar(
        name=str(record['name']),
        type=str(record['type']),
        controls=controls,
        cg_offset_fraction=float(record.get('cg_offset_fraction', 0.0)),
        **values,
    )


def polar_to_dict(polar: ContinuousPolar) -> Dict[str, Any]:
    """Key-value record of a polar (mass distributions are not written)."""
    record: Dict[str, Any] = {'name': polar.name, 'type': polar.type}
    for name in SCALAR_FIELDS:
        record[name] = float(getattr(polar, name))
    if polar.cg_offset_fraction:
        record['cg_offset_fraction'] = float(polar.cg_offset_fraction)
    if polar.controls:
        record['controls'] = {
            control_name: {k: float(getattr(ctrl, k)) for k in CONTROL_FIELDS
                           if getattr(ctrl, k) != 0}
            for control_name, ctrl in polar.controls.items()
        }
    return record


def load_polar_library(path: Optional[str] = None) -> Dict[str, ContinuousPolar]:
    """
    Load every polar of a library file.

    Parameters
    ----------
    path : str, optional
        YAML file with a top-level `polars` mapping. Defaults to the
        library shipped with the package.

    Returns
    -------
    dict
        Preset key -> ContinuousPolar
    """
    path = Path(path) if path is not None else DEFAULT_LIBRARY_PATH
    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}

    records = data.get('polars')
    if not isinstance(records, dict):
        raise ValueError(f"{path}: expected a top-level 'polars' mapping")

    library = {key: polar_from_dict(record) for key, record in records.items()}
    logger.info("Loaded %d polars from %s", len(library), path)
    return library


def save_polar_library(library: Mapping[str, ContinuousPolar], path: str):
    """Write polars to a YAML library file."""
    data = {'polars': {key: polar_to_dict(polar) for key, polar in library.items()}}
    with open(path, 'w') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)
    logger.info("Saved %d polars to %s", len(library), path)


def get_polar(library: Mapping[str, ContinuousPolar], key: str) -> ContinuousPolar:
    if key not in library:
        raise ValueError(f"Unknown polar preset '{key}', available: {sorted(library)}")
    return library[key]


def apply_polar_overrides(polar: ContinuousPolar,
                          overrides: Optional[Mapping[str, Any]]) -> ContinuousPolar:
    """
    Copy of `polar` with scalar fields and control derivatives replaced.

    Control tables are overridden per derivative under a `controls` key,
    e.g. {'cd_0': 0.1, 'controls': {'brake': {'d_cd_0': 0.08}}}.
    """
    if not overrides:
        return polar

    changes = {}
    for key, value in overrides.items():
        if key == 'controls':
            continue
        if key == 'name':
            changes['name'] = str(value)
        elif key in OVERRIDABLE_FIELDS:
            changes[key] = float(value)
        else:
            raise ValueError(f"Unknown polar override field '{key}'")

    control_overrides = overrides.get('controls') or {}
    if control_overrides:
        controls = dict(polar.controls)
        for control_name, table in control_overrides.items():
            if control_name not in CONTROL_NAMES:
                raise ValueError(f"Unknown control '{control_name}' in overrides")
            base = controls.get(control_name, SymmetricControl())
            unknown = set(table) - set(CONTROL_FIELDS)
            if unknown:
                raise ValueError(f"Control '{control_name}': unknown derivative(s) {sorted(unknown)}")
            controls[control_name] = replace(base, **{k: float(v) for k, v in table.items()})
        changes['controls'] = controls

    logger.debug("Polar '%s' overrides: %s", polar.name, changes)
    return replace(polar, **changes)


def apply_segment_overrides(segments: Sequence[AeroSegment],
                            overrides: Optional[Mapping[str, Mapping[str, Any]]]) -> list:
    """
    Per-segment tuning by segment name.

    Keys that are fields of the segment descriptor replace it directly
    (positions as 3-lists); anything under `polar` is applied to the
    segment's polar with apply_polar_overrides().
    """
    if not overrides:
        return list(segments)

    names = {seg.name for seg in segments}
    unknown = set(overrides) - names
    if unknown:
        raise ValueError(f"Overrides name unknown segment(s) {sorted(unknown)}")

    result = []
    for seg in segments:
        seg_overrides = overrides.get(seg.name)
        if not seg_overrides:
            result.append(seg)
            continue

        seg_fields = {f.name for f in fields(seg)}
        changes = {}
        for key, value in seg_overrides.items():
            if key == 'polar':
                if 'polar' not in seg_fields:
                    raise ValueError(f"Segment '{seg.name}' has no polar to override")
                changes['polar'] = apply_polar_overrides(seg.polar, value)
            elif key in seg_fields and key != 'name':
                changes[key] = tuple(value) if isinstance(value, (list, tuple)) else value
            else:
                raise ValueError(f"Unknown override field '{key}' for segment '{seg.name}'")
        result.append(replace(seg, **changes))
    return result
