"""
Human-readable diagnostics and report files for a composed scene.

The text output mirrors what an engineer checks when verifying a
calibration: the rotation matrix, translation vector, full extrinsics
matrix, camera centre and which zones made it into the scene.
"""

import csv
import json
import numpy as np
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence
import logging

from .calibration import CalibrationData
from .scene import ComposedScene
from .viewing_zones import ViewingZone

logger = logging.getLogger(__name__)


def format_matrix(rows: Iterable[Iterable[float]], width: int = 12, precision: int = 8) -> str:
    """Format matrix rows as '[a, b, c]' lines with fixed precision."""
    lines = []
    for row in np.atleast_2d(np.asarray(rows, dtype=np.float64)):
        cells = ", ".join(f"{v:{width}.{precision}f}" for v in row)
        lines.append(f"[{cells}]")
    return "\n".join(lines)


def format_calibration(calibration: CalibrationData) -> str:
    """Calibration summary: R, t, 4x4 extrinsics, camera centre, intrinsics."""
    intr = calibration.intrinsics
    t = calibration.translation
    lines = [
        "Rotation Matrix (R):",
        format_matrix(calibration.rotation),
        "",
        "Translation Vector (t):",
        format_matrix([t]),
        "",
        "Complete Extrinsics Matrix (4x4):",
        format_matrix(calibration.extrinsics_matrix()),
        "",
        f"Rotation orthonormal: {'yes' if calibration.is_orthonormal() else 'NO'}"
        f" (angle {calibration.rotation_angle_deg():.3f} deg)",
        f"Estimated camera center (m): {t[0]:.6f}, {t[1]:.6f}, {t[2]:.6f}",
        "",
        "Intrinsics:",
        f"  Principal point:       ({intr.cx:.3f}, {intr.cy:.3f})",
        f"  Focal length:          ({intr.fx:.3f}, {intr.fy:.3f})",
        f"  Radial distortion:     {', '.join(f'{k:.6g}' for k in intr.radial)}",
        f"  Tangential distortion: {', '.join(f'{p:.6g}' for p in intr.tangential)}",
    ]
    return "\n".join(lines)


def format_scene(scene: ComposedScene, zones: Sequence[ViewingZone] = ()) -> str:
    """Zone inclusion/exclusion summary of a composed scene."""
    lines = []
    if scene.zone_filter is None:
        lines.append("=== ALL VIEWING ZONES ===")
    else:
        lines.append(f"=== ONLY ZONE {scene.zone_filter} ===")

    for placement in scene.zones:
        world = placement.world_corners()
        center = (world.min(axis=0) + world.max(axis=0)) * 0.5
        lines.append(f"  {placement.label:<8} included, center ({center[0]:.1f}, "
                     f"{center[1]:.1f}, {center[2]:.1f})")
    for zone_id in scene.excluded_zone_ids:
        lines.append(f"  Zone {zone_id:<3} skipped, all zero coordinates")

    lines.append(f"=== Created {len(scene.zones)} viewing zone(s) ===")
    if zones:
        lines.append(f"Zones defined: {len(zones)}")

    c = scene.camera.center
    lines.append(f"Camera center (display units): {c[0]:.3f}, {c[1]:.3f}, {c[2]:.3f}")
    lines.append(f"Frustum scale: {scene.camera.frustum_scale:.3f}")
    return "\n".join(lines)


def scene_to_dict(scene: ComposedScene, calibration: Optional[CalibrationData] = None) -> Dict[str, Any]:
    """JSON-serialisable summary of a composed scene."""
    data: Dict[str, Any] = {
        'model': scene.model_name,
        'zone_filter': scene.zone_filter,
        'vehicle_transform': scene.vehicle_transform.tolist(),
        'camera': {
            'center': scene.camera.center.tolist(),
            'center_m': scene.camera.center_m.tolist(),
            'frustum_scale': scene.camera.frustum_scale,
            'marker_radius': scene.camera.marker_radius,
            'local_marker_radius': scene.camera.local_marker_radius,
        },
        'axes': {
            'length': scene.axes.length,
            'arrow_size': scene.axes.arrow_size,
        },
        'zones': [
            {
                'id': p.zone_id,
                'label': p.label,
                'corners': p.world_corners().tolist(),
                'fill_color': list(p.fill_color),
                'outline_color': list(p.outline_color),
            }
            for p in scene.zones
        ],
        'excluded_zone_ids': list(scene.excluded_zone_ids),
    }
    if calibration is not None:
        data['calibration'] = {
            'source': calibration.source,
            'rotation': calibration.rotation.tolist(),
            'translation': calibration.translation.tolist(),
            'orthonormal': calibration.is_orthonormal(),
            'intrinsics': {
                'cx': calibration.intrinsics.cx,
                'cy': calibration.intrinsics.cy,
                'fx': calibration.intrinsics.fx,
                'fy': calibration.intrinsics.fy,
                'radial': [float(k) for k in calibration.intrinsics.radial],
                'tangential': [float(p) for p in calibration.intrinsics.tangential],
            },
        }
    return data


def save_report(
    scene: ComposedScene,
    output_path: str,
    calibration: Optional[CalibrationData] = None,
) -> None:
    """
    Save the composed scene summary to JSON.

    Args:
        scene: Composed scene
        output_path: Path for output JSON file
        calibration: Calibration to include, if given
    """
    with open(output_path, 'w') as f:
        json.dump(scene_to_dict(scene, calibration), f, indent=2)

    logger.info(f"Report saved to {output_path}")


def save_zones_csv(
    scene: ComposedScene,
    zones: Sequence[ViewingZone],
    output_path: str,
) -> None:
    """
    Save one row per defined zone with its inclusion status.

    Args:
        scene: Composed scene
        zones: All zones, as loaded
        output_path: Path for output CSV file
    """
    included = {p.zone_id: p for p in scene.zones}
    excluded = set(scene.excluded_zone_ids)

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow([
            'zone_id', 'label', 'status',
            'center_x', 'center_y', 'center_z',
            'r', 'g', 'b', 'a',
        ])
        for zone in zones:
            if zone.zone_id in included:
                status = 'included'
            elif zone.zone_id in excluded:
                status = 'unused'
            else:
                status = 'filtered'
            center = zone.centroid()
            writer.writerow([
                zone.zone_id, zone.label, status,
                *(float(v) for v in center),
                *zone.color,
            ])

    logger.info(f"Zone table saved to {output_path}")


def write_reports(
    scene: ComposedScene,
    calibration: CalibrationData,
    zones: Sequence[ViewingZone],
    output_dir: str,
) -> List[Path]:
    """Write ``scene_report.json`` and ``zones.csv`` into ``output_dir``."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    report_path = out / 'scene_report.json'
    zones_path = out / 'zones.csv'
    save_report(scene, str(report_path), calibration)
    save_zones_csv(scene, zones, str(zones_path))
    return [report_path, zones_path]
